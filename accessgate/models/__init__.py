"""
Database models.
"""

from .base import Base, UUIDMixin
from .grant import WhitelistEntry, TemporalGrant
from .access_request import AccessRequest, RequestStatus, TERMINAL_STATUSES
from .audit_log import AuditLog

__all__ = [
    # Base
    "Base",
    "UUIDMixin",
    # Models
    "WhitelistEntry",
    "TemporalGrant",
    "AccessRequest",
    "RequestStatus",
    "TERMINAL_STATUSES",
    "AuditLog",
]
