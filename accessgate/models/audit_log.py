"""Audit log model for tracking admin transitions and queued requests."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from accessgate.models.base import Base, UUIDMixin


class AuditLog(Base, UUIDMixin):
    """
    Immutable audit log.

    Every admin transition and every newly queued access request creates an
    entry in the same transaction as the change it describes.
    """

    __tablename__ = "audit_logs"

    # Who performed the action ("system" for the decision engine)
    actor: Mapped[str] = mapped_column(String(255))
    actor_ip: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)  # IPv6 max length

    # What was affected
    resource_type: Mapped[str] = mapped_column(String(100))  # "access_request", "whitelist", ...
    resource_id: Mapped[str] = mapped_column(String(255))
    identity: Mapped[Optional[str]] = mapped_column(String(320), nullable=True, index=True)

    # What happened
    action: Mapped[str] = mapped_column(String(50))

    extra_data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    # Human-readable summary
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # HTTP request ID for correlation
    request_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.resource_type}:{self.resource_id}>"
