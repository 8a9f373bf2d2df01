"""
Request Ledger: pending access requests and their review outcome.
"""

import secrets
from enum import Enum
from typing import Any

from sqlalchemy import select, update

from accessgate.models.access_request import (
    AccessRequest,
    RequestStatus,
    TERMINAL_STATUSES,
)
from accessgate.repositories.base import BaseRepository
from accessgate.utils.identity import normalize_identity


class TransitionOutcome(str, Enum):
    """Result of a compare-and-set status transition."""
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"


def generate_request_id() -> str:
    """Opaque, unguessable admin handle for a request."""
    return "req_" + secrets.token_hex(16)


class RequestLedger(BaseRepository[AccessRequest]):
    """
    Owns the AccessRequest lifecycle.

    Creation happens only through the decision engine; status changes only
    through ``transition``, which is a single conditional UPDATE so that
    exactly one of several racing reviewers wins.
    """

    model = AccessRequest

    async def find_pending_by_identity(self, identity: str) -> AccessRequest | None:
        return await self.get_one(
            identity=normalize_identity(identity),
            status=RequestStatus.PENDING,
        )

    async def find_by_id(self, request_id: str) -> AccessRequest | None:
        return await self.get_one(request_id=request_id)

    async def create_pending(self, *, identity: str, **record: Any) -> AccessRequest:
        """
        Insert a new PENDING request.

        Raises IntegrityError if a PENDING request for identity already
        exists (partial unique index); callers serialize per identity so
        this only fires when another process wins the race.
        """
        return await self.create(
            request_id=generate_request_id(),
            identity=normalize_identity(identity),
            status=RequestStatus.PENDING,
            **record,
        )

    async def transition(
        self,
        request_id: str,
        new_status: RequestStatus,
        **fields: Any,
    ) -> TransitionOutcome:
        """
        Move a PENDING request to a terminal status.

        Compare-and-set on the current status: the UPDATE only matches a row
        that is still PENDING. A zero rowcount is then classified as
        NOT_FOUND or INVALID_TRANSITION.
        """
        if new_status not in TERMINAL_STATUSES:
            raise ValueError(f"Cannot transition to {new_status.value}")

        result = await self.db.execute(
            update(AccessRequest)
            .where(AccessRequest.request_id == request_id)
            .where(AccessRequest.status == RequestStatus.PENDING)
            .values(status=new_status, **fields)
        )
        if result.rowcount == 1:
            return TransitionOutcome.SUCCESS

        if await self.exists(request_id=request_id):
            return TransitionOutcome.INVALID_TRANSITION
        return TransitionOutcome.NOT_FOUND

    async def purge_by_identity(self, identity: str) -> int:
        """Delete every request for identity, whatever its status."""
        return await self.delete_many(identity=normalize_identity(identity))

    async def list_requests(
        self,
        status: RequestStatus | None = None,
    ) -> list[AccessRequest]:
        stmt = select(AccessRequest)
        if status is not None:
            stmt = stmt.where(AccessRequest.status == status)
        stmt = stmt.order_by(AccessRequest.requested_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
