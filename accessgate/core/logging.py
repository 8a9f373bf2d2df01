"""
Structured logging setup.

Usage:
    import structlog

    logger = structlog.get_logger()
    logger.info("Access request created", identity=identity, request_id=rid)

Every event emitted while a request is being served carries the
``http_request_id`` bound by RequestIdMiddleware.
"""

import logging
import sys
from typing import Any

import structlog

from accessgate.api.middleware.request_id import get_request_id
from accessgate.core.config import settings


def add_request_id(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor that stamps the current HTTP request ID."""
    request_id = get_request_id()
    if request_id:
        event_dict.setdefault("http_request_id", request_id)
    return event_dict


def configure_logging(
    level: str | None = None,
    log_format: str | None = None,
) -> None:
    """Configure structlog and the stdlib root logger."""
    level_name = (level or settings.log_level).upper()
    log_format = log_format or settings.log_format
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_request_id,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
