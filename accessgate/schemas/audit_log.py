"""Audit log schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    """Schema for audit log response."""

    id: UUID
    actor: str
    actor_ip: Optional[str]
    resource_type: str
    resource_id: str
    identity: Optional[str]
    action: str
    extra_data: Optional[dict]
    summary: Optional[str]
    request_id: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


# Standard audit actions
class AuditAction:
    """Standard audit action constants."""

    REQUEST_CREATED = "request_created"
    REQUEST_APPROVED = "request_approved"
    REQUEST_TEMP_APPROVED = "request_temp_approved"
    REQUEST_DENIED = "request_denied"
    WHITELIST_ADDED = "whitelist_added"
    IDENTITY_REVOKED = "identity_revoked"


class AuditResource:
    """Resource type constants."""

    ACCESS_REQUEST = "access_request"
    WHITELIST = "whitelist"
    IDENTITY = "identity"
