"""
Admin routes.

Every route requires the admin credential; the check runs before any body
or path validation so unauthenticated callers learn nothing.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from accessgate.api.dependencies.auth import AdminRoute, AdminUser, require_admin
from accessgate.api.dependencies.services import get_admin_service
from accessgate.models.access_request import RequestStatus
from accessgate.schemas.admin import (
    AccessRequestResponse,
    AdminActionResponse,
    ApproveTemporaryRequest,
    DenyRequest,
    RevocationResponse,
    TemporalGrantResponse,
    WhitelistAddRequest,
    WhitelistEntryResponse,
)
from accessgate.schemas.audit_log import AuditLogResponse
from accessgate.services.admin import AccessAdminService
from accessgate.services.exceptions import (
    AlreadyWhitelisted,
    InvalidIdentity,
    InvalidState,
    RequestNotFound,
)

router = APIRouter(route_class=AdminRoute, dependencies=[Depends(require_admin)])


def not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")


def invalid_state(e: InvalidState) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"message": "Request already handled", "status": e.current.value},
    )


# ============================================================
# READS
# ============================================================

@router.get("/requests", response_model=list[AccessRequestResponse])
async def list_requests(
    status_filter: RequestStatus | None = Query(None, alias="status"),
    admin_service: AccessAdminService = Depends(get_admin_service),
):
    """List access requests, newest first. Credentials are redacted."""
    requests = await admin_service.list_requests(status_filter)
    return [AccessRequestResponse.model_validate(r) for r in requests]


@router.get("/whitelist", response_model=list[WhitelistEntryResponse])
async def list_whitelist(
    admin_service: AccessAdminService = Depends(get_admin_service),
):
    entries = await admin_service.list_whitelist()
    return [WhitelistEntryResponse.model_validate(e) for e in entries]


@router.get("/temporal-grants", response_model=list[TemporalGrantResponse])
async def list_temporal_grants(
    admin_service: AccessAdminService = Depends(get_admin_service),
):
    """Active grants. Expired grants are swept before listing."""
    grants = await admin_service.list_active_grants()
    return [TemporalGrantResponse.model_validate(g) for g in grants]


@router.get("/audit-logs", response_model=list[AuditLogResponse])
async def list_audit_logs(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin_service: AccessAdminService = Depends(get_admin_service),
):
    logs = await admin_service.list_audit_logs(limit=limit, offset=offset)
    return [AuditLogResponse.model_validate(log) for log in logs]


# ============================================================
# TRANSITIONS
# ============================================================

@router.post("/requests/{request_id}/approve", response_model=AdminActionResponse)
async def approve_request(
    request_id: str,
    admin: AdminUser,
    admin_service: AccessAdminService = Depends(get_admin_service),
):
    """Approve a pending request permanently (whitelist the identity)."""
    try:
        request = await admin_service.approve_permanent(admin, request_id)
    except RequestNotFound:
        raise not_found()
    except InvalidState as e:
        raise invalid_state(e)

    return AdminActionResponse(
        success=True,
        message="Request approved",
        request=AccessRequestResponse.model_validate(request),
    )


@router.post("/requests/{request_id}/approve-temporary", response_model=AdminActionResponse)
async def approve_request_temporary(
    request_id: str,
    admin: AdminUser,
    data: ApproveTemporaryRequest | None = None,
    admin_service: AccessAdminService = Depends(get_admin_service),
):
    """Approve a pending request with a time-bounded grant."""
    duration = data.duration_hours if data else None
    try:
        request, grant = await admin_service.approve_temporary(admin, request_id, duration)
    except RequestNotFound:
        raise not_found()
    except InvalidState as e:
        raise invalid_state(e)

    return AdminActionResponse(
        success=True,
        message="Temporary access granted",
        request=AccessRequestResponse.model_validate(request),
        expires_at=TemporalGrantResponse.model_validate(grant).expires_at,
    )


@router.post("/requests/{request_id}/deny", response_model=AdminActionResponse)
async def deny_request(
    request_id: str,
    admin: AdminUser,
    data: DenyRequest | None = None,
    admin_service: AccessAdminService = Depends(get_admin_service),
):
    try:
        request = await admin_service.deny(admin, request_id, data.reason if data else None)
    except RequestNotFound:
        raise not_found()
    except InvalidState as e:
        raise invalid_state(e)

    return AdminActionResponse(
        success=True,
        message="Request denied",
        request=AccessRequestResponse.model_validate(request),
    )


# ============================================================
# WHITELIST / REVOCATION
# ============================================================

@router.post("/whitelist", response_model=AdminActionResponse)
async def add_to_whitelist(
    data: WhitelistAddRequest,
    admin: AdminUser,
    admin_service: AccessAdminService = Depends(get_admin_service),
):
    """Whitelist an identity directly. Already-present is a no-op, not an error."""
    try:
        entry = await admin_service.add_whitelist_manual(admin, data.identity)
    except InvalidIdentity:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email format")
    except AlreadyWhitelisted:
        return AdminActionResponse(success=False, message="User already whitelisted")

    return AdminActionResponse(success=True, message=f"Added {entry.identity} to whitelist")


@router.delete("/identities/{identity}", response_model=RevocationResponse)
async def revoke_identity(
    identity: str,
    admin: AdminUser,
    admin_service: AccessAdminService = Depends(get_admin_service),
):
    """Remove an identity from the whitelist, its grants and all its requests."""
    result = await admin_service.revoke(admin, identity)
    return RevocationResponse(
        message=f"Removed {result.identity} from all access lists",
        whitelist_removed=result.whitelist_removed,
        grants_removed=result.grants_removed,
        requests_removed=result.requests_removed,
    )
