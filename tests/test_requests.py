"""
Tests for the request ledger.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from accessgate.models.access_request import RequestStatus
from accessgate.repositories.requests import RequestLedger, TransitionOutcome


async def _create(ledger: RequestLedger, identity: str, clock):
    return await ledger.create_pending(
        identity=identity,
        identity_verified=True,
        requested_at=clock(),
    )


@pytest.mark.asyncio
async def test_create_pending_assigns_opaque_id(db, clock):
    ledger = RequestLedger(db)

    request = await _create(ledger, "Alice@Example.com", clock)

    assert request.request_id.startswith("req_")
    assert len(request.request_id) == 36
    assert request.identity == "alice@example.com"
    assert request.status is RequestStatus.PENDING
    found = await ledger.find_pending_by_identity("alice@example.com")
    assert found.request_id == request.request_id


@pytest.mark.asyncio
async def test_second_pending_request_for_identity_is_rejected(session_factory, clock):
    async with session_factory() as session:
        await _create(RequestLedger(session), "alice@example.com", clock)
        await session.commit()

    async with session_factory() as session:
        with pytest.raises(IntegrityError):
            await _create(RequestLedger(session), "alice@example.com", clock)


@pytest.mark.asyncio
async def test_new_pending_allowed_after_terminal(db, clock):
    ledger = RequestLedger(db)
    first = await _create(ledger, "alice@example.com", clock)
    await ledger.transition(first.request_id, RequestStatus.DENIED, denied_at=clock())

    second = await _create(ledger, "alice@example.com", clock)

    assert second.request_id != first.request_id
    assert len(await ledger.list_requests()) == 2


@pytest.mark.asyncio
async def test_transition_outcomes(db, clock):
    ledger = RequestLedger(db)
    request = await _create(ledger, "alice@example.com", clock)

    assert await ledger.transition(
        request.request_id, RequestStatus.APPROVED, approved_at=clock()
    ) is TransitionOutcome.SUCCESS
    assert await ledger.transition(
        request.request_id, RequestStatus.DENIED, denied_at=clock()
    ) is TransitionOutcome.INVALID_TRANSITION
    assert await ledger.transition(
        "req_missing", RequestStatus.APPROVED, approved_at=clock()
    ) is TransitionOutcome.NOT_FOUND

    stored = await ledger.find_by_id(request.request_id)
    assert stored.status is RequestStatus.APPROVED
    assert stored.denied_at is None


@pytest.mark.asyncio
async def test_transition_to_pending_is_not_allowed(db, clock):
    ledger = RequestLedger(db)
    request = await _create(ledger, "alice@example.com", clock)

    with pytest.raises(ValueError):
        await ledger.transition(request.request_id, RequestStatus.PENDING)


@pytest.mark.asyncio
async def test_list_requests_filters_by_status(db, clock):
    ledger = RequestLedger(db)
    alice = await _create(ledger, "alice@example.com", clock)
    await _create(ledger, "bob@example.com", clock)
    await ledger.transition(alice.request_id, RequestStatus.DENIED, denied_at=clock())

    pending = await ledger.list_requests(RequestStatus.PENDING)
    denied = await ledger.list_requests(RequestStatus.DENIED)

    assert [r.identity for r in pending] == ["bob@example.com"]
    assert [r.identity for r in denied] == ["alice@example.com"]


@pytest.mark.asyncio
async def test_purge_by_identity_removes_every_status(db, clock):
    ledger = RequestLedger(db)
    first = await _create(ledger, "alice@example.com", clock)
    await ledger.transition(first.request_id, RequestStatus.DENIED, denied_at=clock())
    await _create(ledger, "alice@example.com", clock)
    await _create(ledger, "bob@example.com", clock)

    assert await ledger.purge_by_identity("alice@example.com") == 2
    assert [r.identity for r in await ledger.list_requests()] == ["bob@example.com"]
