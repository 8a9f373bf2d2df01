"""
Admin schemas.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from accessgate.models.access_request import AccessRequest, RequestStatus
from accessgate.utils.timezone import to_utc

HIDDEN = "[HIDDEN]"


class AccessRequestResponse(BaseModel):
    """Ledger entry as shown to administrators. The credential is never exposed."""
    model_config = ConfigDict(from_attributes=True)

    request_id: str
    identity: str
    identity_verified: bool
    verified_user_id: str | None = None
    avatar_url: str | None = None
    credential: str | None = None
    requested_at: datetime
    source_address: str | None = None
    user_agent: str | None = None
    status: RequestStatus
    approved_at: datetime | None = None
    denied_at: datetime | None = None
    denial_reason: str | None = None

    @model_validator(mode="before")
    @classmethod
    def redact_credential(cls, data):
        if isinstance(data, AccessRequest):
            return {
                **data.to_dict(),
                "credential": HIDDEN if data.credential_fingerprint else None,
            }
        return data

    @field_validator("requested_at", "approved_at", "denied_at")
    @classmethod
    def as_utc(cls, value: datetime | None) -> datetime | None:
        return to_utc(value) if value else value


class WhitelistEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    identity: str
    added_at: datetime
    added_by: str

    @field_validator("added_at")
    @classmethod
    def as_utc(cls, value: datetime) -> datetime:
        return to_utc(value)


class TemporalGrantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    identity: str
    granted_at: datetime
    expires_at: datetime
    granted_by: str
    duration_hours: int
    request_id: str | None = None

    @field_validator("granted_at", "expires_at")
    @classmethod
    def as_utc(cls, value: datetime) -> datetime:
        return to_utc(value)


class ApproveTemporaryRequest(BaseModel):
    """Temporary approval body; duration defaults to the configured grant length."""
    duration_hours: int | None = Field(None, gt=0, le=24 * 365)


class DenyRequest(BaseModel):
    reason: str | None = Field(None, max_length=1000)


class WhitelistAddRequest(BaseModel):
    identity: str = Field(min_length=3, max_length=320)


class AdminActionResponse(BaseModel):
    """Outcome of an admin write."""
    success: bool
    message: str
    request: AccessRequestResponse | None = None
    expires_at: datetime | None = None


class RevocationResponse(BaseModel):
    success: bool = True
    message: str
    whitelist_removed: int
    grants_removed: int
    requests_removed: int
