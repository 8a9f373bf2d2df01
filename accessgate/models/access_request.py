"""
Access request model (the pending-request ledger).
"""

from datetime import datetime
from enum import Enum
from sqlalchemy import Boolean, DateTime, Index, String, Enum as SQLEnum, text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class RequestStatus(str, Enum):
    """Access request lifecycle. Only PENDING is non-terminal."""
    PENDING = "pending"
    APPROVED = "approved"
    TEMP_APPROVED = "temp_approved"
    DENIED = "denied"


# Legal targets of a transition; the source is always PENDING.
TERMINAL_STATUSES = frozenset(
    {RequestStatus.APPROVED, RequestStatus.TEMP_APPROVED, RequestStatus.DENIED}
)


class AccessRequest(Base):
    """
    A queued authorization decision awaiting administrator action.

    At most one row per identity may be PENDING; the partial unique index
    below enforces it at the storage level.
    """

    __tablename__ = "access_requests"
    __table_args__ = (
        Index(
            "uq_access_requests_pending_identity",
            "identity",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    request_id: Mapped[str] = mapped_column(String(40), primary_key=True)

    # Who asked
    identity: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    identity_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    verified_user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # SHA-256 of the presented credential; the credential itself is not kept
    credential_fingerprint: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Request context
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    source_address: Mapped[str | None] = mapped_column(String(45), nullable=True)  # IPv6 max length
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    # Review
    status: Mapped[RequestStatus] = mapped_column(
        SQLEnum(
            RequestStatus,
            name="request_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=RequestStatus.PENDING,
        nullable=False,
        index=True,
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    denied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    denial_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    def __repr__(self) -> str:
        return f"<AccessRequest {self.request_id} {self.identity} ({self.status.value})>"
