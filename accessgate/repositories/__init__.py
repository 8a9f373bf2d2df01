"""
Repository pattern for data access.
"""

from accessgate.repositories.base import BaseRepository
from accessgate.repositories.grants import GrantStore
from accessgate.repositories.requests import RequestLedger, TransitionOutcome
from accessgate.repositories.audit import AuditTrail

__all__ = [
    "BaseRepository",
    "GrantStore",
    "RequestLedger",
    "TransitionOutcome",
    "AuditTrail",
]
