"""
Rate limiting middleware using Redis sliding window.
"""

import time
import uuid
from dataclasses import dataclass
from typing import Callable

import redis.asyncio as redis
import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from accessgate.core.config import RateLimitSettings, settings

from .client import client_address

logger = structlog.get_logger()


@dataclass(frozen=True)
class RatePolicy:
    """Limit applied to every path starting with ``prefix``."""
    name: str
    prefix: str
    max_requests: int
    message: str


def default_policies(config: RateLimitSettings) -> list[RatePolicy]:
    return [
        RatePolicy(
            name="validate",
            prefix="/api/validate-access",
            max_requests=config.validate_requests,
            message="Too many access validation requests from this IP, please try again later",
        ),
        RatePolicy(
            name="validate",
            prefix="/api/config",
            max_requests=config.validate_requests,
            message="Too many access validation requests from this IP, please try again later",
        ),
        RatePolicy(
            name="admin",
            prefix="/api/admin",
            max_requests=config.admin_requests,
            message="Too many admin requests from this IP, please try again later",
        ),
    ]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-IP rate limiting using a Redis sorted-set sliding window.

    Validation and config endpoints share one budget; admin endpoints have
    their own. Paths without a policy are not limited. Without a Redis
    client every request is admitted.
    """

    def __init__(
        self,
        app,
        redis_client: redis.Redis | None = None,
        config: RateLimitSettings | None = None,
    ):
        super().__init__(app)
        config = config or settings.rate_limit
        self.redis_client = redis_client
        self.enabled = config.enabled
        self.window_seconds = config.window
        self.policies = default_policies(config)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.enabled or self.redis_client is None:
            return await call_next(request)

        policy = self._policy_for(request.url.path)
        if policy is None:
            return await call_next(request)

        identifier = f"{policy.name}:{client_address(request) or 'unknown'}"
        is_allowed, remaining, reset_time = await self._check_rate_limit(
            identifier, policy.max_requests
        )

        if not is_allowed:
            logger.warning("Rate limit exceeded", policy=policy.name, path=request.url.path)
            return JSONResponse(
                status_code=429,
                content={"detail": policy.message, "retry_after": reset_time},
                headers={
                    "X-RateLimit-Limit": str(policy.max_requests),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(reset_time),
                    "Retry-After": str(reset_time),
                },
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(policy.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(reset_time)

        return response

    def _policy_for(self, path: str) -> RatePolicy | None:
        for policy in self.policies:
            if path.startswith(policy.prefix):
                return policy
        return None

    async def _check_rate_limit(
        self,
        identifier: str,
        max_requests: int,
    ) -> tuple[bool, int, int]:
        """
        Check rate limit using sliding window algorithm.

        Returns:
            (is_allowed, remaining_requests, seconds_until_reset)
        """
        now = time.time()
        window_start = now - self.window_seconds
        key = f"rate_limit:{identifier}"

        pipe = self.redis_client.pipeline()
        pipe.zremrangebyscore(key, 0, window_start)
        # Unique member so simultaneous requests are all counted
        pipe.zadd(key, {f"{now}:{uuid.uuid4().hex}": now})
        pipe.zcard(key)
        pipe.expire(key, self.window_seconds)

        results = await pipe.execute()
        request_count = results[2]

        remaining = max(0, max_requests - request_count)
        is_allowed = request_count <= max_requests

        return is_allowed, remaining, self.window_seconds
