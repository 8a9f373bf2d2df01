"""Client address resolution shared by middleware and routes."""

import ipaddress

from starlette.requests import Request


def client_address(request: Request) -> str | None:
    """
    First X-Forwarded-For hop if it is an IP address, else the socket peer.

    The result is stored in access_requests.source_address and
    audit_logs.actor_ip, so anything that does not parse as an address is
    ignored.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        try:
            return str(ipaddress.ip_address(first_hop))
        except ValueError:
            pass
    return request.client.host if request.client else None
