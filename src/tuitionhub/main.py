"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from tuitionhub.admin.router import router as admin_router
from tuitionhub.auth.router import router as auth_router
from tuitionhub.config import get_settings
from tuitionhub.database import close_db, init_db
from tuitionhub.health.router import router as health_router
from tuitionhub.middleware import setup_middleware
from tuitionhub.navigation.router import router as navigation_router
from tuitionhub.payments.router import router as payments_router
from tuitionhub.posts.router import router as posts_router
from tuitionhub.posts.router import unlocks_router
from tuitionhub.profiles.router import router as profiles_router
from tuitionhub.redis_client import close_redis, init_redis
from tuitionhub.wallet.router import router as wallet_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database engine and Redis pool for the lifetime of the app."""
    settings = get_settings()
    await init_db(settings.database_url, pool_size=settings.database_pool_size, echo=settings.debug)
    await init_redis(settings.redis_url)
    logger.info("app_started", environment=settings.environment, version=settings.app_version)

    yield

    await close_db()
    await close_redis()
    logger.info("app_stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Settings are validated here, so a bad environment fails at startup.
    """
    settings = get_settings()

    app = FastAPI(
        title="TuitionHub API",
        description="Tuition marketplace backend: listings, contact unlocks, manual payment review",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(profiles_router)
    app.include_router(posts_router)
    app.include_router(unlocks_router)
    app.include_router(payments_router)
    app.include_router(wallet_router)
    app.include_router(admin_router)
    app.include_router(navigation_router)

    return app


app = create_app()
