"""
Grant Store: permanent whitelist and time-bounded grants.
"""

from datetime import datetime, timedelta

import structlog
from sqlalchemy import delete, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from accessgate.models.grant import TemporalGrant, WhitelistEntry
from accessgate.repositories.base import BaseRepository
from accessgate.utils.identity import normalize_identity

logger = structlog.get_logger()


def validate_duration_hours(duration_hours) -> int:
    """Return ``duration_hours`` if it is a positive int, else raise ValueError."""
    if (
        isinstance(duration_hours, bool)
        or not isinstance(duration_hours, int)
        or duration_hours <= 0
    ):
        raise ValueError("duration_hours must be a positive integer")
    return duration_hours


class WhitelistRepository(BaseRepository[WhitelistEntry]):
    model = WhitelistEntry


class TemporalGrantRepository(BaseRepository[TemporalGrant]):
    model = TemporalGrant


class GrantStore:
    """
    Owns the lifecycle of WhitelistEntry and TemporalGrant rows.

    All identity arguments are normalized here, so callers may pass the
    address in any case.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.whitelist = WhitelistRepository(db)
        self.grants = TemporalGrantRepository(db)

    async def is_whitelisted(self, identity: str) -> bool:
        return await self.whitelist.exists(identity=normalize_identity(identity))

    async def has_active_grant(self, identity: str, now: datetime) -> bool:
        """True iff some grant for identity has ``expires_at > now``."""
        stmt = select(
            exists().where(
                TemporalGrant.identity == normalize_identity(identity),
                TemporalGrant.expires_at > now,
            )
        )
        return bool(await self.db.scalar(stmt))

    async def add_whitelist(
        self,
        identity: str,
        actor: str,
        now: datetime,
    ) -> tuple[WhitelistEntry, bool]:
        """
        Add identity to the whitelist.

        Returns (entry, created). ``created`` is False when the identity was
        already present, including when a concurrent writer won the insert.
        """
        identity = normalize_identity(identity)
        existing = await self.whitelist.get_one(identity=identity)
        if existing:
            return existing, False

        try:
            async with self.db.begin_nested():
                entry = await self.whitelist.create(
                    identity=identity,
                    added_at=now,
                    added_by=actor,
                )
        except IntegrityError:
            entry = await self.whitelist.get_one(identity=identity)
            if entry is None:
                raise
            return entry, False

        return entry, True

    async def remove_identity(self, identity: str) -> tuple[int, int]:
        """
        Remove the whitelist entry and every grant for identity.

        Idempotent. Returns (whitelist rows removed, grants removed).
        """
        identity = normalize_identity(identity)
        removed_entries = await self.whitelist.delete_many(identity=identity)
        removed_grants = await self.grants.delete_many(identity=identity)
        return removed_entries, removed_grants

    async def add_temporal_grant(
        self,
        identity: str,
        duration_hours: int,
        actor: str,
        now: datetime,
        request_id: str | None = None,
    ) -> TemporalGrant:
        """Create a grant expiring ``duration_hours`` after ``now``."""
        duration_hours = validate_duration_hours(duration_hours)

        return await self.grants.create(
            identity=normalize_identity(identity),
            granted_at=now,
            expires_at=now + timedelta(hours=duration_hours),
            granted_by=actor,
            duration_hours=duration_hours,
            request_id=request_id,
        )

    async def sweep_expired(self, now: datetime) -> int:
        """Delete grants with ``expires_at <= now``. Returns the count removed."""
        result = await self.db.execute(
            delete(TemporalGrant).where(TemporalGrant.expires_at <= now)
        )
        removed = result.rowcount or 0
        if removed:
            logger.info("Expired temporal grants swept", removed=removed)
        return removed

    async def list_whitelist(self) -> list[WhitelistEntry]:
        result = await self.db.execute(
            select(WhitelistEntry).order_by(WhitelistEntry.added_at.desc())
        )
        return list(result.scalars().all())

    async def list_active_grants(self, now: datetime) -> list[TemporalGrant]:
        result = await self.db.execute(
            select(TemporalGrant)
            .where(TemporalGrant.expires_at > now)
            .order_by(TemporalGrant.expires_at)
        )
        return list(result.scalars().all())
