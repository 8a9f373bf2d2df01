"""
Service dependencies.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from accessgate.core.interfaces import IdentityVerifier
from accessgate.services.access import AccessDecisionService
from accessgate.services.admin import AccessAdminService
from accessgate.services.verifier import ProviderIdentityVerifier
from .database import get_session_factory


@lru_cache
def get_identity_verifier() -> IdentityVerifier:
    """Identity provider adapter (stateless, shared)."""
    return ProviderIdentityVerifier()


async def get_access_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> AccessDecisionService:
    """Get decision engine instance."""
    return AccessDecisionService(session_factory, verifier)


async def get_admin_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AccessAdminService:
    """Get admin service instance."""
    return AccessAdminService(session_factory)
