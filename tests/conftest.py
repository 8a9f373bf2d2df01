"""
Pytest fixtures for testing.

Provides:
- File-backed SQLite database per test (concurrent sessions need real connections)
- Controllable clock and identity verifier
- Services and an HTTP client wired to both
- Factory fixtures for creating test data
- Mock implementations for external backends
"""

from datetime import datetime, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from accessgate.api.dependencies.auth import get_admin_settings
from accessgate.api.dependencies.database import get_session_factory
from accessgate.api.dependencies.services import (
    get_access_service,
    get_admin_service,
    get_identity_verifier,
)
from accessgate.core.config import AdminSettings
from accessgate.core.interfaces import IdentityVerifier, VerificationResult
from accessgate.main import app
from accessgate.models.access_request import AccessRequest, RequestStatus
from accessgate.models.base import Base
from accessgate.repositories.grants import GrantStore
from accessgate.repositories.requests import RequestLedger
from accessgate.services.access import AccessDecisionService
from accessgate.services.admin import AccessAdminService, AdminPrincipal
from accessgate.utils.locks import KeyedLock
from accessgate.utils.timezone import UTC

ADMIN_PASSWORD = "test-admin-password"


# ============ Clock / Verifier ============


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class StubVerifier(IdentityVerifier):
    """Identity verifier with a fixed token table; unknown tokens fail."""

    def __init__(self):
        self.tokens: dict[str, VerificationResult] = {}
        self.calls: list[str] = []

    def register(
        self,
        token: str,
        identity: str,
        user_id: str = "user-1",
        avatar_url: str | None = None,
    ) -> None:
        self.tokens[token] = VerificationResult.success(identity, user_id, avatar_url)

    async def verify(self, raw_token: str) -> VerificationResult:
        self.calls.append(raw_token)
        return self.tokens.get(raw_token, VerificationResult.failure("token rejected"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def verifier() -> StubVerifier:
    return StubVerifier()


# ============ Database ============


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'accessgate.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Single session for repository-level tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ============ Services ============


@pytest.fixture
def access_service(session_factory, verifier, clock) -> AccessDecisionService:
    return AccessDecisionService(session_factory, verifier, clock=clock, locks=KeyedLock())


@pytest.fixture
def admin_service(session_factory, clock) -> AccessAdminService:
    return AccessAdminService(session_factory, clock=clock)


@pytest.fixture
def admin() -> AdminPrincipal:
    return AdminPrincipal(name="admin", source_address="127.0.0.1")


# ============ HTTP client ============


@pytest_asyncio.fixture(scope="function")
async def client(
    session_factory,
    verifier,
    access_service,
    admin_service,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Test client with database, verifier and clock overrides.
    """
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_identity_verifier] = lambda: verifier
    app.dependency_overrides[get_access_service] = lambda: access_service
    app.dependency_overrides[get_admin_service] = lambda: admin_service
    app.dependency_overrides[get_admin_settings] = lambda: AdminSettings(
        password=ADMIN_PASSWORD,
    )

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Password": ADMIN_PASSWORD}


# ============ Factory Fixtures ============


class AccessFactory:
    """Factory for seeding grants and requests directly."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: FakeClock):
        self.session_factory = session_factory
        self.clock = clock

    async def whitelist(self, identity: str, actor: str = "admin") -> None:
        async with self.session_factory() as session:
            await GrantStore(session).add_whitelist(identity, actor, self.clock())
            await session.commit()

    async def grant(self, identity: str, hours: int = 24, actor: str = "admin") -> None:
        async with self.session_factory() as session:
            await GrantStore(session).add_temporal_grant(identity, hours, actor, self.clock())
            await session.commit()

    async def pending_request(self, identity: str, **record) -> AccessRequest:
        record.setdefault("identity_verified", True)
        record.setdefault("requested_at", self.clock())
        async with self.session_factory() as session:
            request = await RequestLedger(session).create_pending(identity=identity, **record)
            await session.commit()
        return request

    async def requests_for(self, identity: str) -> list[AccessRequest]:
        async with self.session_factory() as session:
            return [
                r for r in await RequestLedger(session).list_requests()
                if r.identity == identity
            ]

    async def pending_for(self, identity: str) -> list[AccessRequest]:
        return [
            r for r in await self.requests_for(identity)
            if r.status is RequestStatus.PENDING
        ]


@pytest.fixture
def access_factory(session_factory, clock) -> AccessFactory:
    return AccessFactory(session_factory, clock)


# ============ Mock Implementations ============


class MockRedisPipeline:
    """Buffers sorted-set commands and applies them on execute()."""

    def __init__(self, redis: "MockRedis"):
        self.redis = redis
        self.commands: list[tuple] = []

    def zremrangebyscore(self, key: str, min_score: float, max_score: float):
        self.commands.append(("zremrangebyscore", key, min_score, max_score))
        return self

    def zadd(self, key: str, mapping: dict[str, float]):
        self.commands.append(("zadd", key, mapping))
        return self

    def zcard(self, key: str):
        self.commands.append(("zcard", key))
        return self

    def expire(self, key: str, seconds: int):
        self.commands.append(("expire", key, seconds))
        return self

    async def execute(self) -> list:
        results = []
        for name, key, *args in self.commands:
            zset = self.redis.zsets.setdefault(key, {})
            if name == "zremrangebyscore":
                low, high = args
                doomed = [m for m, score in zset.items() if low <= score <= high]
                for member in doomed:
                    del zset[member]
                results.append(len(doomed))
            elif name == "zadd":
                zset.update(args[0])
                results.append(len(args[0]))
            elif name == "zcard":
                results.append(len(zset))
            else:
                results.append(True)
        self.commands.clear()
        return results


class MockRedis:
    """Mock Redis client supporting the rate limiter's pipeline."""

    def __init__(self):
        self.zsets: dict[str, dict[str, float]] = {}

    def pipeline(self) -> MockRedisPipeline:
        return MockRedisPipeline(self)


@pytest.fixture
def mock_redis() -> MockRedis:
    return MockRedis()
