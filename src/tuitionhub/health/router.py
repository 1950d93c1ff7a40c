"""Liveness, readiness and version probes."""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tuitionhub.config import get_settings
from tuitionhub.database import get_session
from tuitionhub.redis_client import get_redis

logger = structlog.get_logger()

router = APIRouter()


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.scalar(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("readiness_database_failed", error=str(exc))
        return "error"
    return "ok"


async def _check_redis() -> str:
    try:
        await get_redis().ping()
    except (RuntimeError, RedisError) as exc:
        logger.warning("readiness_redis_failed", error=str(exc))
        return "error"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_session)) -> JSONResponse:
    """Ready only when PostgreSQL and Redis both answer; 503 otherwise so the balancer drains us."""
    checks = {"database": await _check_database(db), "redis": await _check_redis()}
    ready = all(v == "ok" for v in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "degraded", "checks": checks},
    )


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"version": settings.app_version, "environment": settings.environment}
