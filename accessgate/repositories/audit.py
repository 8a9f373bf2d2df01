"""Audit trail for access decisions and admin transitions."""

from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from accessgate.api.middleware.request_id import get_request_id
from accessgate.models.audit_log import AuditLog
from accessgate.schemas.audit_log import AuditAction

logger = structlog.get_logger()


class AuditTrail:
    """
    Appends audit entries inside the caller's unit of work.

    Entries are flushed, not committed, so an entry exists if and only if
    the change it describes was committed.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        *,
        action: str,
        resource_type: str,
        resource_id: str,
        actor: str,
        now: datetime,
        identity: Optional[str] = None,
        actor_ip: Optional[str] = None,
        extra_data: Optional[dict] = None,
        summary: Optional[str] = None,
    ) -> AuditLog:
        """
        Create an audit log entry.

        Args:
            action: The action performed (use AuditAction constants)
            resource_type: Type of resource affected (use AuditResource constants)
            resource_id: ID of the affected resource
            actor: Admin name, or "system" for the decision engine
            now: Timestamp of the change
            identity: Identity the change concerns
            actor_ip: IP address of the actor
            extra_data: Additional context
            summary: Human-readable summary
        """
        entry = AuditLog(
            actor=actor,
            actor_ip=actor_ip,
            resource_type=resource_type,
            resource_id=str(resource_id),
            identity=identity,
            action=action,
            extra_data=extra_data,
            summary=summary or self._generate_summary(action, actor, identity),
            request_id=get_request_id() or None,
            created_at=now,
        )
        self.db.add(entry)
        await self.db.flush()

        logger.debug(
            "Audit log recorded",
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
        )
        return entry

    def _generate_summary(
        self,
        action: str,
        actor: str,
        identity: Optional[str],
    ) -> str:
        """Generate a human-readable summary."""
        subject = identity or "unknown identity"
        action_past = {
            AuditAction.REQUEST_CREATED: f"queued an access request for {subject}",
            AuditAction.REQUEST_APPROVED: f"approved permanent access for {subject}",
            AuditAction.REQUEST_TEMP_APPROVED: f"granted temporary access to {subject}",
            AuditAction.REQUEST_DENIED: f"denied the access request of {subject}",
            AuditAction.WHITELIST_ADDED: f"added {subject} to the whitelist",
            AuditAction.IDENTITY_REVOKED: f"revoked all access for {subject}",
        }.get(action, action)
        return f"{actor} {action_past}"

    async def list(self, *, limit: int = 50, offset: int = 0) -> list[AuditLog]:
        """List audit logs, newest first."""
        result = await self.db.execute(
            select(AuditLog)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())
