"""API dependencies."""

from .auth import AdminUser, require_admin
from .database import get_session_factory
from .services import get_access_service, get_admin_service, get_identity_verifier

__all__ = [
    "AdminUser",
    "require_admin",
    "get_session_factory",
    "get_access_service",
    "get_admin_service",
    "get_identity_verifier",
]
