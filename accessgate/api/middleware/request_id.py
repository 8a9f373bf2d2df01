"""
Request ID middleware for request tracing.

The id is taken from an incoming ``X-Request-ID`` header when it looks sane,
otherwise generated. It is echoed on the response, exposed through
``get_request_id()`` for the log processor, and copied onto audit entries.
"""

import contextvars
import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Caller-supplied ids end up in logs and the audit table
_ACCEPTABLE_ID = re.compile(r"^[A-Za-z0-9._-]{1,100}$")

request_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar(
    "request_id", default=""
)


def get_request_id() -> str:
    """Request id of the HTTP call being served, or "" outside one."""
    return request_id_ctx.get()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation id to each request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = incoming if _ACCEPTABLE_ID.match(incoming) else uuid.uuid4().hex

        token = request_id_ctx.set(request_id)
        try:
            request.state.request_id = request_id
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
