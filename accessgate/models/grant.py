"""
Grant models: permanent whitelist entries and time-bounded grants.
"""

from datetime import datetime
from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDMixin


class WhitelistEntry(Base, UUIDMixin):
    """Permanent authorization for one identity. No expiry."""

    __tablename__ = "whitelist_entries"

    identity: Mapped[str] = mapped_column(
        String(320),
        unique=True,
        nullable=False,
        index=True,
    )
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    added_by: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<WhitelistEntry {self.identity}>"


class TemporalGrant(Base, UUIDMixin):
    """
    Time-bounded authorization.

    Several grants may exist for one identity; any unexpired one is
    sufficient. ``expires_at`` is computed once, at grant time.
    """

    __tablename__ = "temporal_grants"
    __table_args__ = (
        CheckConstraint("duration_hours > 0", name="ck_temporal_grants_duration_positive"),
    )

    identity: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    granted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    granted_by: Mapped[str] = mapped_column(String(255), nullable=False)
    duration_hours: Mapped[int] = mapped_column(Integer, nullable=False)

    # Request whose approval produced this grant (None for direct grants)
    request_id: Mapped[str | None] = mapped_column(String(40), nullable=True)

    def __repr__(self) -> str:
        return f"<TemporalGrant {self.identity} until {self.expires_at}>"
