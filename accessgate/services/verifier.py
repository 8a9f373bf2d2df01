"""Identity provider adapter."""

from typing import Any

import httpx
import structlog

from accessgate.core.config import VerifierSettings, settings
from accessgate.core.interfaces import IdentityVerifier, VerificationResult

logger = structlog.get_logger()

# Matches access_requests.avatar_url
MAX_AVATAR_URL_LENGTH = 1000


class ProviderIdentityVerifier(IdentityVerifier):
    """
    Verifies tokens against the provider's profile endpoint.

    One POST per call, bounded by ``timeout``; no retry. Every failure mode
    (HTTP error status, provider error body, missing user, transport error,
    timeout) becomes an unverified result.

    Usage:
        verifier = ProviderIdentityVerifier()
        result = await verifier.verify(token)
        if result.verified:
            ...
    """

    def __init__(
        self,
        config: VerifierSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        config = config or settings.verifier
        self.url = config.url
        self.timeout = config.timeout
        self.collection = config.collection
        self._client = client

    async def verify(self, raw_token: str) -> VerificationResult:
        if not raw_token or not raw_token.strip():
            return VerificationResult.failure("empty token")

        payload = {"authKey": raw_token, "collection": self.collection, "ids": []}

        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(self.url, json=payload, timeout=self.timeout)
        except httpx.TimeoutException:
            logger.warning("Identity provider timed out", timeout=self.timeout)
            return VerificationResult.failure("provider timeout")
        except httpx.HTTPError as e:
            logger.warning("Identity provider unreachable", error=str(e))
            return VerificationResult.failure("provider unreachable")

        if not response.is_success:
            logger.warning("Identity provider HTTP error", status_code=response.status_code)
            return VerificationResult.failure(f"provider HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            logger.warning("Identity provider returned invalid JSON")
            return VerificationResult.failure("invalid provider response")

        return self._parse(data)

    def _parse(self, data: Any) -> VerificationResult:
        if not isinstance(data, dict):
            return VerificationResult.failure("invalid provider response")

        if data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            logger.info("Identity provider rejected token", error=message)
            return VerificationResult.failure("token rejected")

        # The profile is either top level or wrapped in "result"
        user = data.get("user")
        if user is None and isinstance(data.get("result"), dict):
            user = data["result"].get("user")

        if not isinstance(user, dict) or not user.get("_id") or not user.get("email"):
            logger.info("Identity provider response has no usable user")
            return VerificationResult.failure("no user in provider response")

        avatar = user.get("avatar")
        if not isinstance(avatar, str) or len(avatar) > MAX_AVATAR_URL_LENGTH:
            avatar = None

        return VerificationResult.success(
            identity=str(user["email"]),
            user_id=str(user["_id"]),
            avatar_url=avatar or None,
        )
