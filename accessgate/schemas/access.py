"""
Access validation schemas and the decision type.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DecisionOutcome(str, Enum):
    """The five possible answers to a validation call."""
    AUTHORIZED = "authorized"
    AUTHORIZED_TEMPORARY = "authorized_temporary"
    PENDING_EXISTING = "pending_existing"
    PENDING_CREATED = "pending_created"
    DENIED = "denied"


class DenialReason:
    """Reason texts returned with DENIED decisions."""

    NO_TOKEN = "No auth token provided"
    IDENTITY_UNRESOLVED = "identity unresolved"
    INVALID_IDENTITY = "Invalid identity format"
    INVALID_PROVIDER_IDENTITY = "Invalid identity from authentication provider"
    UNAVAILABLE = "Authorization temporarily unavailable"


PENDING_EXISTING_REASON = "Access request pending approval"
PENDING_CREATED_REASON = "Access request submitted for approval"


@dataclass(frozen=True)
class AccessDecision:
    """
    Result of a validation call.

    Attributes:
        outcome: Which of the five answers this is
        identity: Resolved identity (absent for most denials)
        verified: False when the identity came from the client-asserted fallback
        request_id: Pending request handle (pending outcomes only)
        reason: Denial reason (denied only)
    """
    outcome: DecisionOutcome
    identity: str | None = None
    verified: bool = False
    request_id: str | None = None
    reason: str | None = None

    @classmethod
    def authorized(cls, identity: str, verified: bool) -> "AccessDecision":
        return cls(DecisionOutcome.AUTHORIZED, identity=identity, verified=verified)

    @classmethod
    def authorized_temporary(cls, identity: str, verified: bool) -> "AccessDecision":
        return cls(DecisionOutcome.AUTHORIZED_TEMPORARY, identity=identity, verified=verified)

    @classmethod
    def pending_existing(cls, identity: str, verified: bool, request_id: str) -> "AccessDecision":
        return cls(
            DecisionOutcome.PENDING_EXISTING,
            identity=identity,
            verified=verified,
            request_id=request_id,
        )

    @classmethod
    def pending_created(cls, identity: str, verified: bool, request_id: str) -> "AccessDecision":
        return cls(
            DecisionOutcome.PENDING_CREATED,
            identity=identity,
            verified=verified,
            request_id=request_id,
        )

    @classmethod
    def denied(cls, reason: str) -> "AccessDecision":
        return cls(DecisionOutcome.DENIED, reason=reason)

    @property
    def is_authorized(self) -> bool:
        return self.outcome in (DecisionOutcome.AUTHORIZED, DecisionOutcome.AUTHORIZED_TEMPORARY)

    def to_response(self) -> "ValidateAccessResponse":
        """Serialize for the validation endpoint."""
        if self.outcome is DecisionOutcome.AUTHORIZED:
            return ValidateAccessResponse(
                authorized=True, identity=self.identity, verified=self.verified
            )
        if self.outcome is DecisionOutcome.AUTHORIZED_TEMPORARY:
            return ValidateAccessResponse(
                authorized=True, temporary=True, identity=self.identity, verified=self.verified
            )
        if self.outcome is DecisionOutcome.DENIED:
            return ValidateAccessResponse(authorized=False, reason=self.reason)

        reason = (
            PENDING_EXISTING_REASON
            if self.outcome is DecisionOutcome.PENDING_EXISTING
            else PENDING_CREATED_REASON
        )
        return ValidateAccessResponse(
            authorized=False,
            reason=reason,
            request_id=self.request_id,
            identity=self.identity,
            verified=self.verified,
        )


class ValidateAccessRequest(BaseModel):
    """Validation call body. ``email`` is the client-asserted fallback identity."""
    model_config = ConfigDict(populate_by_name=True)

    auth_key: str | None = Field(None, alias="authKey", max_length=4096)
    email: str | None = Field(None, max_length=320)


class ValidateAccessResponse(BaseModel):
    """Serialized AccessDecision."""
    model_config = ConfigDict(populate_by_name=True)

    authorized: bool
    temporary: bool | None = None
    verified: bool | None = None
    reason: str | None = None
    request_id: str | None = Field(None, serialization_alias="requestId")
    identity: str | None = None


class ConfigBundleRequest(BaseModel):
    """Config bundle request body."""
    model_config = ConfigDict(populate_by_name=True)

    auth_key: str | None = Field(None, alias="authKey", max_length=4096)


class ConfigBundleResponse(BaseModel):
    """Opaque configuration handed to authorized clients."""
    model_config = ConfigDict(populate_by_name=True)

    default_addons: list[str] = Field(default_factory=list, serialization_alias="defaultAddons")
    default_streaming_server_url: str | None = Field(
        None, serialization_alias="defaultStreamingServerUrl"
    )
