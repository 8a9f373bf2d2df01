"""Middleware package."""

from accessgate.api.middleware.request_id import RequestIdMiddleware, get_request_id
from accessgate.api.middleware.logging import LoggingMiddleware
from accessgate.api.middleware.rate_limit import RateLimitMiddleware

__all__ = [
    "RequestIdMiddleware",
    "get_request_id",
    "LoggingMiddleware",
    "RateLimitMiddleware",
]
