"""Service-level errors, mapped to HTTP responses by the route layer."""

from accessgate.models.access_request import RequestStatus


class AccessError(Exception):
    """Base class for access service errors."""
    pass


class RequestNotFound(AccessError):
    """Admin referenced a request id that does not exist."""

    def __init__(self, request_id: str):
        super().__init__(f"Request not found: {request_id}")
        self.request_id = request_id


class InvalidState(AccessError):
    """Admin attempted a transition from a non-pending request."""

    def __init__(self, request_id: str, current: RequestStatus):
        super().__init__(f"Request {request_id} is already {current.value}")
        self.request_id = request_id
        self.current = current


class InvalidIdentity(AccessError):
    """Identity failed the format check."""
    pass


class AlreadyWhitelisted(AccessError):
    """Whitelist add for an identity that is already present."""

    def __init__(self, identity: str):
        super().__init__(f"{identity} is already whitelisted")
        self.identity = identity


class Unauthenticated(AccessError):
    """No credential, or the provider would not verify it."""
    pass


class NotAuthorized(AccessError):
    """Verified identity with neither whitelist entry nor active grant."""
    pass
