"""
Tests for the HTTP surface.
"""

import pytest
from httpx import AsyncClient

from accessgate.core.config import BundleSettings


# ============ Validation ============


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_validate_access_queues_request(client: AsyncClient, verifier, access_factory):
    verifier.register("tok-alice", "alice@example.com")

    response = await client.post(
        "/api/validate-access",
        json={"authKey": "tok-alice"},
        headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1", "User-Agent": "player/1.0"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["authorized"] is False
    assert data["requestId"].startswith("req_")
    assert data["identity"] == "alice@example.com"
    assert "X-Request-ID" in response.headers

    [request] = await access_factory.requests_for("alice@example.com")
    assert request.source_address == "203.0.113.9"
    assert request.user_agent == "player/1.0"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "forwarded, stored",
    [
        ("x" * 200, "127.0.0.1"),
        ("not-an-address, 10.0.0.1", "127.0.0.1"),
        ("2001:db8::1", "2001:db8::1"),
    ],
)
async def test_validate_access_forwarded_address(
    client: AsyncClient, verifier, access_factory, forwarded, stored
):
    verifier.register("tok-alice", "alice@example.com")

    response = await client.post(
        "/api/validate-access",
        json={"authKey": "tok-alice"},
        headers={"X-Forwarded-For": forwarded},
    )

    assert response.status_code == 200
    assert response.json()["requestId"].startswith("req_")

    [request] = await access_factory.requests_for("alice@example.com")
    assert request.source_address == stored


@pytest.mark.asyncio
async def test_validate_access_authorized(client: AsyncClient, verifier, access_factory):
    verifier.register("tok-alice", "alice@example.com")
    await access_factory.whitelist("alice@example.com")

    response = await client.post("/api/validate-access", json={"authKey": "tok-alice"})

    assert response.status_code == 200
    data = response.json()
    assert data["authorized"] is True
    assert data["temporary"] is None
    assert data["verified"] is True


@pytest.mark.asyncio
async def test_validate_access_without_token(client: AsyncClient):
    response = await client.post("/api/validate-access", json={"email": "bob@example.com"})

    assert response.status_code == 200
    assert response.json() == {
        "authorized": False,
        "temporary": None,
        "verified": None,
        "reason": "No auth token provided",
        "requestId": None,
        "identity": None,
    }


# ============ Config bundle ============


@pytest.mark.asyncio
async def test_config_requires_authentication(client: AsyncClient):
    response = await client.post("/api/config", json={"authKey": "tok-unknown"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_config_forbidden_without_grant(client: AsyncClient, verifier):
    verifier.register("tok-alice", "alice@example.com")

    response = await client.post("/api/config", json={"authKey": "tok-alice"})

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_config_bundle_for_whitelisted(client: AsyncClient, verifier, access_factory, monkeypatch):
    from accessgate.core.config import settings

    monkeypatch.setattr(
        settings,
        "bundle",
        BundleSettings(
            default_addons=["https://addon.test/manifest.json"],
            streaming_server_url="http://stream.test:11470",
        ),
    )
    verifier.register("tok-alice", "alice@example.com")
    await access_factory.whitelist("alice@example.com")

    response = await client.post("/api/config", json={"authKey": "tok-alice"})

    assert response.status_code == 200
    assert response.json() == {
        "defaultAddons": ["https://addon.test/manifest.json"],
        "defaultStreamingServerUrl": "http://stream.test:11470",
    }


# ============ Admin ============


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, path",
    [
        ("GET", "/api/admin/requests"),
        ("POST", "/api/admin/requests/req_x/approve"),
        ("POST", "/api/admin/requests/req_x/deny"),
        ("GET", "/api/admin/whitelist"),
        ("POST", "/api/admin/whitelist"),
        ("DELETE", "/api/admin/identities/alice@example.com"),
        ("GET", "/api/admin/temporal-grants"),
        ("GET", "/api/admin/audit-logs"),
    ],
)
async def test_admin_routes_require_credential(client: AsyncClient, method, path):
    missing = await client.request(method, path)
    wrong = await client.request(method, path, headers={"X-Admin-Password": "guess"})

    assert missing.status_code == 403
    assert wrong.status_code == 403
    assert wrong.json() == {"detail": "Unauthorized"}

    malformed = await client.request(
        method,
        path,
        content="{not json",
        headers={"X-Admin-Password": "guess", "Content-Type": "application/json"},
    )
    assert malformed.status_code == 403
    assert malformed.json() == {"detail": "Unauthorized"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path, body",
    [
        ("/api/admin/whitelist", {"identity": 42}),
        ("/api/admin/requests/req_x/approve-temporary", {"duration_hours": "soon"}),
    ],
)
async def test_admin_credential_checked_before_body_validation(client: AsyncClient, path, body):
    response = await client.post(path, json=body)

    assert response.status_code == 403
    assert response.json() == {"detail": "Unauthorized"}


@pytest.mark.asyncio
async def test_admin_approve_flow(client: AsyncClient, admin_headers, verifier):
    verifier.register("tok-alice", "alice@example.com")
    queued = await client.post("/api/validate-access", json={"authKey": "tok-alice"})
    request_id = queued.json()["requestId"]

    listing = await client.get("/api/admin/requests?status=pending", headers=admin_headers)
    assert listing.status_code == 200
    [entry] = listing.json()
    assert entry["request_id"] == request_id
    assert entry["credential"] == "[HIDDEN]"
    assert "tok-alice" not in listing.text

    approved = await client.post(
        f"/api/admin/requests/{request_id}/approve", headers=admin_headers
    )
    assert approved.status_code == 200
    assert approved.json()["request"]["status"] == "approved"

    again = await client.post(
        f"/api/admin/requests/{request_id}/deny", headers=admin_headers
    )
    assert again.status_code == 409
    assert again.json()["detail"]["status"] == "approved"

    decision = await client.post("/api/validate-access", json={"authKey": "tok-alice"})
    assert decision.json()["authorized"] is True


@pytest.mark.asyncio
async def test_admin_approve_temporary(client: AsyncClient, admin_headers, access_factory):
    request = await access_factory.pending_request("alice@example.com")

    response = await client.post(
        f"/api/admin/requests/{request.request_id}/approve-temporary",
        json={"duration_hours": 3},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["request"]["status"] == "temp_approved"
    assert data["expires_at"].startswith("2026-01-01T15:00:00")

    grants = await client.get("/api/admin/temporal-grants", headers=admin_headers)
    [grant] = grants.json()
    assert grant["identity"] == "alice@example.com"
    assert grant["duration_hours"] == 3


@pytest.mark.asyncio
async def test_admin_approve_temporary_rejects_bad_duration(client: AsyncClient, admin_headers, access_factory):
    request = await access_factory.pending_request("alice@example.com")

    response = await client.post(
        f"/api/admin/requests/{request.request_id}/approve-temporary",
        json={"duration_hours": 0},
        headers=admin_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_admin_unknown_request(client: AsyncClient, admin_headers):
    response = await client.post("/api/admin/requests/req_missing/approve", headers=admin_headers)

    assert response.status_code == 404
    assert response.json() == {"detail": "Request not found"}


@pytest.mark.asyncio
async def test_admin_deny_with_reason(client: AsyncClient, admin_headers, access_factory):
    request = await access_factory.pending_request("alice@example.com")

    response = await client.post(
        f"/api/admin/requests/{request.request_id}/deny",
        json={"reason": "Unknown user"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["request"]["denial_reason"] == "Unknown user"


@pytest.mark.asyncio
async def test_admin_whitelist_management(client: AsyncClient, admin_headers):
    added = await client.post(
        "/api/admin/whitelist", json={"identity": "Carol@Example.com"}, headers=admin_headers
    )
    duplicate = await client.post(
        "/api/admin/whitelist", json={"identity": "carol@example.com"}, headers=admin_headers
    )
    invalid = await client.post(
        "/api/admin/whitelist", json={"identity": "not-an-email"}, headers=admin_headers
    )
    listing = await client.get("/api/admin/whitelist", headers=admin_headers)

    assert added.status_code == 200
    assert added.json()["success"] is True
    assert duplicate.status_code == 200
    assert duplicate.json() == {
        "success": False,
        "message": "User already whitelisted",
        "request": None,
        "expires_at": None,
    }
    assert invalid.status_code == 400
    assert [e["identity"] for e in listing.json()] == ["carol@example.com"]


@pytest.mark.asyncio
async def test_admin_revoke(client: AsyncClient, admin_headers, access_factory):
    await access_factory.whitelist("alice@example.com")
    await access_factory.grant("alice@example.com")
    await access_factory.pending_request("alice@example.com")

    response = await client.delete(
        "/api/admin/identities/alice@example.com", headers=admin_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert (data["whitelist_removed"], data["grants_removed"], data["requests_removed"]) == (1, 1, 1)

    audit = await client.get("/api/admin/audit-logs", headers=admin_headers)
    assert audit.json()[0]["action"] == "identity_revoked"
    assert audit.json()[0]["request_id"] == response.headers["X-Request-ID"]
