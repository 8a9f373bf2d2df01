"""
Admin transition service.

Applies reviewer decisions to the Request Ledger and the Grant Store. Each
write operation is one transaction: the status transition, the grant change
and the audit entry commit together or not at all.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from accessgate.core.config import settings
from accessgate.models.access_request import AccessRequest, RequestStatus
from accessgate.models.audit_log import AuditLog
from accessgate.models.grant import TemporalGrant, WhitelistEntry
from accessgate.repositories.audit import AuditTrail
from accessgate.repositories.grants import GrantStore, validate_duration_hours
from accessgate.repositories.requests import RequestLedger, TransitionOutcome
from accessgate.schemas.audit_log import AuditAction, AuditResource
from accessgate.services.exceptions import (
    AlreadyWhitelisted,
    InvalidIdentity,
    InvalidState,
    RequestNotFound,
)
from accessgate.utils.identity import is_valid_identity, normalize_identity
from accessgate.utils.timezone import Clock, utc_now

logger = structlog.get_logger()

DEFAULT_DENIAL_REASON = "No reason provided"


@dataclass(frozen=True)
class AdminPrincipal:
    """Administrator performing an operation; passed explicitly to every call."""
    name: str
    source_address: str | None = None


@dataclass(frozen=True)
class RevocationResult:
    """Rows removed by a revoke."""
    identity: str
    whitelist_removed: int
    grants_removed: int
    requests_removed: int


class AccessAdminService:
    """Administrator operations on requests, whitelist and grants."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Clock = utc_now,
    ):
        self.session_factory = session_factory
        self.clock = clock

    # ============================================================
    # REQUEST TRANSITIONS
    # ============================================================

    async def approve_permanent(self, admin: AdminPrincipal, request_id: str) -> AccessRequest:
        """Approve a pending request and whitelist its identity."""
        async with self.session_factory() as session:
            now = self.clock()
            request = await self._transition(
                session, request_id, RequestStatus.APPROVED, approved_at=now
            )

            _, created = await GrantStore(session).add_whitelist(request.identity, admin.name, now)
            await AuditTrail(session).record(
                action=AuditAction.REQUEST_APPROVED,
                resource_type=AuditResource.ACCESS_REQUEST,
                resource_id=request_id,
                actor=admin.name,
                actor_ip=admin.source_address,
                identity=request.identity,
                now=now,
                extra_data={"whitelist_created": created},
            )
            await session.commit()

        logger.info(
            "Access request approved",
            access_request_id=request_id,
            identity=request.identity,
            permanent=True,
        )
        return request

    async def approve_temporary(
        self,
        admin: AdminPrincipal,
        request_id: str,
        duration_hours: int | None = None,
    ) -> tuple[AccessRequest, TemporalGrant]:
        """Approve a pending request with a grant of ``duration_hours``."""
        if duration_hours is None:
            duration_hours = settings.access.default_grant_hours
        duration_hours = validate_duration_hours(duration_hours)

        async with self.session_factory() as session:
            now = self.clock()
            request = await self._transition(
                session, request_id, RequestStatus.TEMP_APPROVED, approved_at=now
            )

            grant = await GrantStore(session).add_temporal_grant(
                request.identity,
                duration_hours,
                admin.name,
                now,
                request_id=request_id,
            )
            await AuditTrail(session).record(
                action=AuditAction.REQUEST_TEMP_APPROVED,
                resource_type=AuditResource.ACCESS_REQUEST,
                resource_id=request_id,
                actor=admin.name,
                actor_ip=admin.source_address,
                identity=request.identity,
                now=now,
                extra_data={
                    "duration_hours": duration_hours,
                    "expires_at": grant.expires_at.isoformat(),
                },
            )
            await session.commit()

        logger.info(
            "Temporary access granted",
            access_request_id=request_id,
            identity=request.identity,
            duration_hours=duration_hours,
        )
        return request, grant

    async def deny(
        self,
        admin: AdminPrincipal,
        request_id: str,
        reason: str | None = None,
    ) -> AccessRequest:
        """Deny a pending request. Denial is not a lockout: a later call queues anew."""
        reason = reason or DEFAULT_DENIAL_REASON

        async with self.session_factory() as session:
            now = self.clock()
            request = await self._transition(
                session,
                request_id,
                RequestStatus.DENIED,
                denied_at=now,
                denial_reason=reason,
            )
            await AuditTrail(session).record(
                action=AuditAction.REQUEST_DENIED,
                resource_type=AuditResource.ACCESS_REQUEST,
                resource_id=request_id,
                actor=admin.name,
                actor_ip=admin.source_address,
                identity=request.identity,
                now=now,
                extra_data={"reason": reason},
            )
            await session.commit()

        logger.info("Access request denied", access_request_id=request_id, identity=request.identity)
        return request

    async def _transition(
        self,
        session: AsyncSession,
        request_id: str,
        new_status: RequestStatus,
        **fields,
    ) -> AccessRequest:
        """Compare-and-set a pending request, or raise NotFound / InvalidState."""
        ledger = RequestLedger(session)
        outcome = await ledger.transition(request_id, new_status, **fields)

        if outcome is TransitionOutcome.NOT_FOUND:
            raise RequestNotFound(request_id)

        request = await ledger.find_by_id(request_id)
        if request is None:
            # Purged by a concurrent revoke
            raise RequestNotFound(request_id)
        if outcome is TransitionOutcome.INVALID_TRANSITION:
            raise InvalidState(request_id, request.status)
        return request

    # ============================================================
    # WHITELIST / REVOCATION
    # ============================================================

    async def add_whitelist_manual(self, admin: AdminPrincipal, identity: str) -> WhitelistEntry:
        """
        Whitelist an identity directly.

        Raises:
            InvalidIdentity: identity fails the format check
            AlreadyWhitelisted: identity is already present (nothing changed)
        """
        if not is_valid_identity(identity):
            raise InvalidIdentity("Invalid email format")
        identity = normalize_identity(identity)

        async with self.session_factory() as session:
            now = self.clock()
            entry, created = await GrantStore(session).add_whitelist(identity, admin.name, now)
            if not created:
                raise AlreadyWhitelisted(identity)

            await AuditTrail(session).record(
                action=AuditAction.WHITELIST_ADDED,
                resource_type=AuditResource.WHITELIST,
                resource_id=str(entry.id),
                actor=admin.name,
                actor_ip=admin.source_address,
                identity=identity,
                now=now,
            )
            await session.commit()

        logger.info("Identity whitelisted", identity=identity)
        return entry

    async def revoke(self, admin: AdminPrincipal, identity: str) -> RevocationResult:
        """
        Full reset of an identity: whitelist entry, every grant and every
        ledger record are removed. Idempotent.
        """
        identity = normalize_identity(identity)

        async with self.session_factory() as session:
            now = self.clock()
            whitelist_removed, grants_removed = await GrantStore(session).remove_identity(identity)
            requests_removed = await RequestLedger(session).purge_by_identity(identity)
            result = RevocationResult(
                identity=identity,
                whitelist_removed=whitelist_removed,
                grants_removed=grants_removed,
                requests_removed=requests_removed,
            )
            await AuditTrail(session).record(
                action=AuditAction.IDENTITY_REVOKED,
                resource_type=AuditResource.IDENTITY,
                resource_id=identity,
                actor=admin.name,
                actor_ip=admin.source_address,
                identity=identity,
                now=now,
                extra_data={
                    "whitelist_removed": whitelist_removed,
                    "grants_removed": grants_removed,
                    "requests_removed": requests_removed,
                },
            )
            await session.commit()

        logger.info(
            "Identity revoked",
            identity=identity,
            whitelist_removed=whitelist_removed,
            grants_removed=grants_removed,
            requests_removed=requests_removed,
        )
        return result

    # ============================================================
    # READS
    # ============================================================

    async def list_requests(self, status: RequestStatus | None = None) -> list[AccessRequest]:
        async with self.session_factory() as session:
            return await RequestLedger(session).list_requests(status)

    async def list_whitelist(self) -> list[WhitelistEntry]:
        async with self.session_factory() as session:
            return await GrantStore(session).list_whitelist()

    async def list_active_grants(self) -> list[TemporalGrant]:
        """Sweep expired grants, then list the rest."""
        async with self.session_factory() as session:
            grants = GrantStore(session)
            now = self.clock()
            await grants.sweep_expired(now)
            await session.commit()
            return await grants.list_active_grants(now)

    async def list_audit_logs(self, *, limit: int = 50, offset: int = 0) -> list[AuditLog]:
        async with self.session_factory() as session:
            return await AuditTrail(session).list(limit=limit, offset=offset)


async def sweep_expired_grants(
    session_factory: async_sessionmaker[AsyncSession],
    clock: Clock = utc_now,
) -> int:
    """Delete expired grants in their own transaction. Used at startup and by the worker."""
    async with session_factory() as session:
        removed = await GrantStore(session).sweep_expired(clock())
        await session.commit()
    return removed
