"""
Authorization decision engine.

Turns a raw identity token into one of five decisions:

1. Resolve the identity (provider, then the client-asserted fallback)
2. Whitelisted                    -> AUTHORIZED
3. Active temporal grant          -> AUTHORIZED_TEMPORARY
4. A pending request exists       -> PENDING_EXISTING
5. Otherwise queue a new request  -> PENDING_CREATED

Steps 4 and 5 run under a per-identity lock so that concurrent calls for
one identity queue exactly one request. The lock is never held across the
provider call.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from accessgate.core.interfaces import IdentityVerifier
from accessgate.repositories.audit import AuditTrail
from accessgate.repositories.grants import GrantStore
from accessgate.repositories.requests import RequestLedger
from accessgate.schemas.access import AccessDecision, DenialReason
from accessgate.schemas.audit_log import AuditAction, AuditResource
from accessgate.services.exceptions import NotAuthorized, Unauthenticated
from accessgate.utils.identity import (
    fingerprint_credential,
    is_valid_identity,
    normalize_identity,
)
from accessgate.utils.locks import KeyedLock
from accessgate.utils.timezone import Clock, utc_now

logger = structlog.get_logger()

# Shared by every AccessDecisionService in the process
pending_request_locks = KeyedLock()

SYSTEM_ACTOR = "system"


@dataclass(frozen=True)
class ResolvedIdentity:
    """Identity the decision is about, with its trust level."""
    identity: str
    verified: bool
    user_id: str | None = None
    avatar_url: str | None = None


class AccessDecisionService:
    """
    Answers "is this caller authorized right now".

    Each call opens its own session, so the service is safe to share between
    concurrent requests.

    Usage:
        service = AccessDecisionService(async_session_factory, verifier)
        decision = await service.decide(token, "a@x.com", "203.0.113.9", "curl/8")
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        verifier: IdentityVerifier,
        *,
        clock: Clock = utc_now,
        locks: KeyedLock | None = None,
    ):
        self.session_factory = session_factory
        self.verifier = verifier
        self.clock = clock
        self.locks = locks if locks is not None else pending_request_locks

    async def decide(
        self,
        raw_token: str | None,
        asserted_identity: str | None = None,
        source_address: str | None = None,
        user_agent: str | None = None,
    ) -> AccessDecision:
        """Evaluate a validation call. Never raises for decision-path failures."""
        if not raw_token or not raw_token.strip():
            logger.info("Validation denied", reason=DenialReason.NO_TOKEN)
            return AccessDecision.denied(DenialReason.NO_TOKEN)

        resolved = await self._resolve_identity(raw_token, asserted_identity)
        if isinstance(resolved, AccessDecision):
            return resolved

        try:
            return await self._evaluate(resolved, raw_token, source_address, user_agent)
        except (SQLAlchemyError, OSError):
            # OSError: driver-level connect failures surface unwrapped
            logger.exception("Access evaluation failed", identity=resolved.identity)
            return AccessDecision.denied(DenialReason.UNAVAILABLE)

    async def _resolve_identity(
        self,
        raw_token: str,
        asserted_identity: str | None,
    ) -> ResolvedIdentity | AccessDecision:
        """Provider verification first; the asserted identity only as a fallback."""
        result = await self.verifier.verify(raw_token)

        if result.verified:
            if not is_valid_identity(result.identity):
                logger.warning("Provider returned malformed identity")
                return AccessDecision.denied(DenialReason.INVALID_PROVIDER_IDENTITY)
            return ResolvedIdentity(
                identity=normalize_identity(result.identity),
                verified=True,
                user_id=result.user_id,
                avatar_url=result.avatar_url,
            )

        if not asserted_identity:
            logger.info(
                "Validation denied",
                reason=DenialReason.IDENTITY_UNRESOLVED,
                verification=result.reason,
            )
            return AccessDecision.denied(DenialReason.IDENTITY_UNRESOLVED)

        if not is_valid_identity(asserted_identity):
            logger.info("Validation denied", reason=DenialReason.INVALID_IDENTITY)
            return AccessDecision.denied(DenialReason.INVALID_IDENTITY)

        identity = normalize_identity(asserted_identity)
        logger.warning(
            "Identity verification failed, using asserted identity",
            identity=identity,
            verification=result.reason,
        )
        return ResolvedIdentity(identity=identity, verified=False)

    async def _evaluate(
        self,
        resolved: ResolvedIdentity,
        raw_token: str,
        source_address: str | None,
        user_agent: str | None,
    ) -> AccessDecision:
        identity = resolved.identity

        async with self.session_factory() as session:
            grants = GrantStore(session)

            if await grants.is_whitelisted(identity):
                logger.info("Access granted", identity=identity, tier="whitelist")
                return AccessDecision.authorized(identity, resolved.verified)

            if await grants.has_active_grant(identity, self.clock()):
                logger.info("Access granted", identity=identity, tier="temporary")
                return AccessDecision.authorized_temporary(identity, resolved.verified)

        async with self.locks.hold(identity):
            return await self._queue_request(resolved, raw_token, source_address, user_agent)

    async def _queue_request(
        self,
        resolved: ResolvedIdentity,
        raw_token: str,
        source_address: str | None,
        user_agent: str | None,
    ) -> AccessDecision:
        """Return the pending request for identity, creating it if needed."""
        identity = resolved.identity

        async with self.session_factory() as session:
            ledger = RequestLedger(session)

            existing = await ledger.find_pending_by_identity(identity)
            if existing:
                logger.info(
                    "Access request already pending",
                    identity=identity,
                    access_request_id=existing.request_id,
                )
                return AccessDecision.pending_existing(
                    identity, resolved.verified, existing.request_id
                )

            now = self.clock()
            try:
                request = await ledger.create_pending(
                    identity=identity,
                    identity_verified=resolved.verified,
                    verified_user_id=resolved.user_id,
                    avatar_url=resolved.avatar_url,
                    credential_fingerprint=fingerprint_credential(raw_token),
                    requested_at=now,
                    source_address=source_address,
                    user_agent=user_agent[:512] if user_agent else None,
                )
                await AuditTrail(session).record(
                    action=AuditAction.REQUEST_CREATED,
                    resource_type=AuditResource.ACCESS_REQUEST,
                    resource_id=request.request_id,
                    actor=SYSTEM_ACTOR,
                    actor_ip=source_address,
                    identity=identity,
                    now=now,
                    extra_data={"identity_verified": resolved.verified},
                )
                await session.commit()
            except IntegrityError:
                # Another process queued a request for this identity first
                await session.rollback()
                existing = await ledger.find_pending_by_identity(identity)
                if existing is None:
                    raise
                return AccessDecision.pending_existing(
                    identity, resolved.verified, existing.request_id
                )

        logger.info(
            "Access request created",
            identity=identity,
            access_request_id=request.request_id,
            identity_verified=resolved.verified,
        )
        return AccessDecision.pending_created(identity, resolved.verified, request.request_id)

    async def authorize_bundle(self, raw_token: str | None) -> str:
        """
        Gate for the configuration bundle.

        Requires a provider-verified identity (no asserted fallback).

        Raises:
            Unauthenticated: No token, or the provider would not verify it
            NotAuthorized: Verified, but neither whitelisted nor granted
        """
        if not raw_token or not raw_token.strip():
            raise Unauthenticated("Authentication required")

        result = await self.verifier.verify(raw_token)
        if not result.verified or not is_valid_identity(result.identity):
            raise Unauthenticated("Authentication failed")

        identity = normalize_identity(result.identity)
        async with self.session_factory() as session:
            grants = GrantStore(session)
            authorized = await grants.is_whitelisted(identity) or await grants.has_active_grant(
                identity, self.clock()
            )

        if not authorized:
            logger.info("Config bundle denied", identity=identity)
            raise NotAuthorized("Access denied")

        return identity
