"""
Administrator authentication.

The admin credential is presented on every call in the ``X-Admin-Password``
header; nothing about it is kept between requests.

Usage:
    router = APIRouter(route_class=AdminRoute, dependencies=[Depends(require_admin)])

    @router.get("/whitelist")
    async def handler(admin: AdminUser):
        ...
"""

import hmac
from typing import Annotated, Callable

import structlog
from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.routing import APIRoute
from fastapi.security import APIKeyHeader

from accessgate.api.middleware.client import client_address
from accessgate.core.config import AdminSettings, settings
from accessgate.services.admin import AdminPrincipal

logger = structlog.get_logger()

ADMIN_PASSWORD_HEADER = "X-Admin-Password"

admin_password_header = APIKeyHeader(name=ADMIN_PASSWORD_HEADER, auto_error=False)


def get_admin_settings() -> AdminSettings:
    return settings.admin


def authenticate_admin(request: Request, config: AdminSettings) -> AdminPrincipal:
    """
    Check the admin credential on ``request``.

    Raises:
        HTTPException 403: Same generic error for a missing credential, a
            wrong one, or an admin API that has no credential configured.
    """
    password = request.headers.get(ADMIN_PASSWORD_HEADER)
    expected = config.password
    if not expected or not password or not hmac.compare_digest(
        password.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("Admin authentication failed", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized",
        )

    return AdminPrincipal(name=config.actor_name, source_address=client_address(request))


async def require_admin(
    request: Request,
    password: str | None = Depends(admin_password_header),
    config: AdminSettings = Depends(get_admin_settings),
) -> AdminPrincipal:
    """Require a valid admin credential."""
    return authenticate_admin(request, config)


class AdminRoute(APIRoute):
    """Route that checks the admin credential before the request body is parsed."""

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()

        async def authenticated_handler(request: Request) -> Response:
            settings_provider = request.app.dependency_overrides.get(
                get_admin_settings, get_admin_settings
            )
            authenticate_admin(request, settings_provider())
            return await handler(request)

        return authenticated_handler


# Admin principal (required)
AdminUser = Annotated[AdminPrincipal, Depends(require_admin)]
