"""
Business services.
"""

from accessgate.services.access import AccessDecisionService
from accessgate.services.admin import AccessAdminService, AdminPrincipal, sweep_expired_grants
from accessgate.services.verifier import ProviderIdentityVerifier

__all__ = [
    "AccessDecisionService",
    "AccessAdminService",
    "AdminPrincipal",
    "ProviderIdentityVerifier",
    "sweep_expired_grants",
]
