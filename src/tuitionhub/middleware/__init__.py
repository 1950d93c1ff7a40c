"""HTTP middleware stack and exception handlers for the API."""

from fastapi import FastAPI

from tuitionhub.config import Settings
from tuitionhub.middleware.cors import setup_cors
from tuitionhub.middleware.error_handler import setup_error_handlers
from tuitionhub.middleware.logging import setup_logging
from tuitionhub.middleware.rate_limit import RateLimitMiddleware
from tuitionhub.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    # Outermost first once added: CORS, request id, rate limit, then the app.
    # CORS wraps 429 responses so browsers can read them; rate-limited
    # requests are still logged with their request id.
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
        trusted_proxies=settings.trusted_proxies,
    )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
