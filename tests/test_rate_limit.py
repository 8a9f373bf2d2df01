"""
Tests for per-IP rate limiting.
"""

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from accessgate.api.middleware.rate_limit import RateLimitMiddleware
from accessgate.core.config import RateLimitSettings


def build_app(redis_client, **overrides) -> FastAPI:
    config = RateLimitSettings(
        enabled=True,
        window=60,
        validate_requests=2,
        admin_requests=3,
        **overrides,
    )
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, redis_client=redis_client, config=config)

    @app.post("/api/validate-access")
    async def validate():
        return {"ok": True}

    @app.post("/api/config")
    async def config_bundle():
        return {"ok": True}

    @app.get("/api/admin/requests")
    async def admin_requests():
        return []

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


async def _client(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_validation_limit_per_ip(mock_redis):
    async with await _client(build_app(mock_redis)) as client:
        first = await client.post("/api/validate-access")
        second = await client.post("/api/validate-access")
        third = await client.post("/api/validate-access")

    assert first.status_code == 200
    assert first.headers["X-RateLimit-Remaining"] == "1"
    assert second.status_code == 200
    assert third.status_code == 429
    assert third.headers["Retry-After"] == "60"
    assert "access validation" in third.json()["detail"]


@pytest.mark.asyncio
async def test_validation_and_config_share_a_budget(mock_redis):
    async with await _client(build_app(mock_redis)) as client:
        await client.post("/api/validate-access")
        await client.post("/api/config")
        blocked = await client.post("/api/config")

    assert blocked.status_code == 429


@pytest.mark.asyncio
async def test_admin_budget_is_separate(mock_redis):
    async with await _client(build_app(mock_redis)) as client:
        await client.post("/api/validate-access")
        await client.post("/api/validate-access")
        statuses = [(await client.get("/api/admin/requests")).status_code for _ in range(4)]

    assert statuses == [200, 200, 200, 429]


@pytest.mark.asyncio
async def test_budgets_are_per_client_address(mock_redis):
    async with await _client(build_app(mock_redis)) as client:
        for _ in range(2):
            await client.post("/api/validate-access", headers={"X-Forwarded-For": "198.51.100.1"})
        other = await client.post("/api/validate-access", headers={"X-Forwarded-For": "198.51.100.2"})

    assert other.status_code == 200


@pytest.mark.asyncio
async def test_unlisted_paths_are_not_limited(mock_redis):
    async with await _client(build_app(mock_redis)) as client:
        statuses = [(await client.get("/health")).status_code for _ in range(5)]

    assert statuses == [200] * 5
    assert mock_redis.zsets == {}


@pytest.mark.asyncio
async def test_without_redis_everything_passes():
    async with await _client(build_app(None)) as client:
        statuses = [(await client.post("/api/validate-access")).status_code for _ in range(5)]

    assert statuses == [200] * 5


@pytest.mark.asyncio
async def test_disabled_limiter_passes(mock_redis):
    app = FastAPI()
    app.add_middleware(
        RateLimitMiddleware,
        redis_client=mock_redis,
        config=RateLimitSettings(enabled=False, validate_requests=1),
    )

    @app.post("/api/validate-access")
    async def validate():
        return {"ok": True}

    async with await _client(app) as client:
        statuses = [(await client.post("/api/validate-access")).status_code for _ in range(3)]

    assert statuses == [200] * 3
