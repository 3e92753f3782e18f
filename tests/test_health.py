"""Health and welcome endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint reports server, version and database status."""
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_needs_no_token(client):
    resp = await client.get("/api/health", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_welcome(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Welcome to TaskDesk"
