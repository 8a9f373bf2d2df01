"""
Core abstractions consumed by the decision engine.

Application code depends on these interfaces, never on a concrete
identity provider.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of checking a token with the identity provider.

    Attributes:
        verified: Whether the provider vouched for the token
        identity: Address the provider reported (verified only)
        user_id: Provider's opaque user id (verified only)
        avatar_url: Optional profile picture
        reason: Why verification failed (unverified only; for logs)
    """
    verified: bool
    identity: str | None = None
    user_id: str | None = None
    avatar_url: str | None = None
    reason: str | None = None

    @classmethod
    def success(
        cls,
        identity: str,
        user_id: str,
        avatar_url: str | None = None,
    ) -> "VerificationResult":
        return cls(verified=True, identity=identity, user_id=user_id, avatar_url=avatar_url)

    @classmethod
    def failure(cls, reason: str) -> "VerificationResult":
        return cls(verified=False, reason=reason)


class IdentityVerifier(ABC):
    """
    Resolves a raw token to a verified identity.

    Implementations must not raise: transport and provider failures are
    reported as ``VerificationResult.failure``.
    """

    @abstractmethod
    async def verify(self, raw_token: str) -> VerificationResult:
        """Verify ``raw_token`` with the provider."""
        pass
