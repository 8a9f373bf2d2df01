"""
Client-facing access routes.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from accessgate.api.dependencies.services import get_access_service
from accessgate.api.middleware.client import client_address
from accessgate.schemas.access import (
    ConfigBundleRequest,
    ConfigBundleResponse,
    ValidateAccessRequest,
    ValidateAccessResponse,
)
from accessgate.services.access import AccessDecisionService
from accessgate.services.bundle import load_config_bundle
from accessgate.services.exceptions import NotAuthorized, Unauthenticated

router = APIRouter()


@router.post("/validate-access", response_model=ValidateAccessResponse)
async def validate_access(
    data: ValidateAccessRequest,
    request: Request,
    access_service: AccessDecisionService = Depends(get_access_service),
):
    """
    Decide whether the caller may use the service.

    Always 200: denials and pending requests are answers, not errors.
    """
    decision = await access_service.decide(
        data.auth_key,
        data.email,
        source_address=client_address(request),
        user_agent=request.headers.get("user-agent"),
    )
    return decision.to_response()


@router.post("/config", response_model=ConfigBundleResponse)
async def get_config_bundle(
    data: ConfigBundleRequest,
    access_service: AccessDecisionService = Depends(get_access_service),
):
    """
    Configuration bundle for authorized callers.

    401 when the caller cannot be authenticated, 403 when authenticated but
    not authorized.
    """
    try:
        await access_service.authorize_bundle(data.auth_key)
    except Unauthenticated as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except NotAuthorized as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    return load_config_bundle()
