"""Auth API tests — login, admin-only registration and the request gate.

Pattern: accounts are created through the service (fixtures), then the
HTTP surface is exercised with real bearer tokens.
"""

from types import SimpleNamespace

import pytest

from conftest import PASSWORD, auth_headers
from taskdesk.auth import dependencies
from taskdesk.auth.jwt import create_access_token


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_returns_token(client, worker):
    """Valid credentials → bearer token in the envelope's data."""
    resp = await client.post(
        "/api/auth/login", json={"email": worker.email, "password": PASSWORD}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Authentication successful"
    assert body["data"]["token_type"] == "bearer"
    assert body["data"]["expires_in"] > 0

    token = body["data"]["access_token"]
    me = await client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["data"]["email"] == worker.email


@pytest.mark.asyncio
async def test_login_wrong_password(client, worker):
    resp = await client.post(
        "/api/auth/login", json={"email": worker.email, "password": "not-the-password"}
    )
    assert resp.status_code == 401
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_unknown_email_looks_like_wrong_password(client):
    resp = await client.post(
        "/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD}
    )
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_deactivated_account_is_forbidden(client, make_user):
    user = await make_user(active=False)
    resp = await client.post(
        "/api/auth/login", json={"email": user.email, "password": PASSWORD}
    )
    assert resp.status_code == 403
    assert "deactivated" in resp.json()["message"]


# ═══════════════════════════════════════════════════════════
# Register
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_admin_registers_manager(client, admin):
    resp = await client.post(
        "/api/auth/register",
        json={
            "name": "New Manager",
            "email": "new.manager@example.com",
            "password": "long-enough-pw",
            "role": "MANAGER",
        },
        headers=auth_headers(admin),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "User registered successfully"
    assert body["data"]["role"] == "MANAGER"
    assert body["data"]["is_active"] is True
    assert "password_hash" not in body["data"]

    login = await client.post(
        "/api/auth/login",
        json={"email": "new.manager@example.com", "password": "long-enough-pw"},
    )
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_register_role_defaults_to_user(client, admin):
    resp = await client.post(
        "/api/auth/register",
        json={"name": "Plain", "email": "plain@example.com", "password": "long-enough-pw"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["role"] == "USER"


@pytest.mark.asyncio
async def test_manager_cannot_register(client, manager):
    resp = await client.post(
        "/api/auth/register",
        json={"name": "X", "email": "x@example.com", "password": "long-enough-pw"},
        headers=auth_headers(manager),
    )
    assert resp.status_code == 403
    assert resp.json()["message"].startswith("Access denied")


@pytest.mark.asyncio
async def test_register_without_token_is_unauthorized(client):
    resp = await client.post(
        "/api/auth/register",
        json={"name": "X", "email": "x@example.com", "password": "long-enough-pw"},
    )
    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_register_duplicate_email(client, admin, worker):
    resp = await client.post(
        "/api/auth/register",
        json={"name": "Dup", "email": worker.email, "password": "long-enough-pw"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Email already in use"


@pytest.mark.asyncio
async def test_register_validation_errors_are_reported_per_field(client, admin):
    resp = await client.post(
        "/api/auth/register",
        json={"name": "Short", "email": "not-an-email", "password": "short"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert set(body["errors"]) >= {"email", "password"}


# ═══════════════════════════════════════════════════════════
# Gate
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_garbage_token_is_unauthorized(client):
    resp = await client.get("/api/users/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Authentication required"


@pytest.mark.asyncio
async def test_expired_token_is_unauthorized(client, worker):
    token = create_access_token(worker.email, expires_minutes=-1)
    resp = await client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_token_for_unknown_account_is_unauthorized(client):
    token = create_access_token("ghost@example.com")
    resp = await client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_non_bearer_scheme_is_ignored(client, worker):
    token = create_access_token(worker.email)
    resp = await client.get("/api/users/me", headers={"Authorization": f"Basic {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_deactivated_token_holder_is_forbidden(client, admin, worker, db_session):
    """A still-valid token stops working once the account is deactivated."""
    headers = auth_headers(worker)
    assert (await client.get("/api/users/me", headers=headers)).status_code == 200

    resp = await client.put(
        f"/api/users/{worker.id}/status",
        params={"isActive": "false"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 200

    resp = await client.get("/api/users/me", headers=headers)
    assert resp.status_code == 403
    assert "deactivated" in resp.json()["message"]


@pytest.mark.asyncio
async def test_gate_runs_once_per_request(db_session, worker, monkeypatch):
    """Resolving the caller twice reuses the stored gate result."""
    calls = []
    real_authenticate = dependencies.authenticate

    async def counting_authenticate(authorization, users):
        calls.append(authorization)
        return await real_authenticate(authorization, users)

    monkeypatch.setattr(dependencies, "authenticate", counting_authenticate)
    request = SimpleNamespace(state=SimpleNamespace())
    header = auth_headers(worker)["Authorization"]

    first = await dependencies.get_current_user_optional(request, header, db_session)
    # No header and no session the second time: only the memo can answer.
    second = await dependencies.get_current_user_optional(request, None, None)

    assert len(calls) == 1
    assert first is second
    assert first.user_id == worker.id
    assert request.state.auth_gate.state == dependencies.GateState.VERIFIED
