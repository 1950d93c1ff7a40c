"""structlog setup: JSON lines in production, the console renderer locally."""

import logging
from collections.abc import MutableMapping
from typing import Any

import structlog

from tuitionhub.config import Settings

# Keys whose values never reach the log stream in clear.
_REDACTED_KEYS = frozenset({"password", "authorization", "refresh_token", "access_token", "phone", "user_phone"})
_MASKED_KEYS = frozenset({"utr_number"})


def _scrub_sensitive(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    for key in event_dict.keys() & _REDACTED_KEYS:
        event_dict[key] = "[redacted]"
    for key in event_dict.keys() & _MASKED_KEYS:
        value = str(event_dict[key])
        event_dict[key] = "*" * max(0, len(value) - 4) + value[-4:]
    return event_dict


def setup_logging(settings: Settings) -> None:
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _scrub_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO), format="%(message)s")
    for noisy in ("sqlalchemy.engine", "botocore", "aiobotocore"):
        logging.getLogger(noisy).setLevel(logging.DEBUG if settings.debug else logging.WARNING)
