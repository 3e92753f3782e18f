"""Error handling tests — unexpected failures and leaked driver details."""

import pytest
from httpx import ASGITransport, AsyncClient

from taskdesk.db.engine import get_db
from taskdesk.main import app, create_app


@pytest.mark.asyncio
async def test_unexpected_error_returns_envelope_without_detail():
    """Any unhandled exception → 500 envelope; the exception text stays in the log."""
    broken_app = create_app()

    @broken_app.get("/api/explode")
    async def explode():
        raise RuntimeError("secret connection string")

    transport = ASGITransport(app=broken_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        resp = await ac.get("/api/explode")

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "An unexpected error occurred"
    assert "secret" not in resp.text


class _UnreachableDatabase:
    async def execute(self, *args, **kwargs):
        raise ConnectionError("could not connect to host=db.internal user=taskdesk")


@pytest.mark.asyncio
async def test_health_hides_database_error_text(client):
    async def override_get_db():
        yield _UnreachableDatabase()

    app.dependency_overrides[get_db] = override_get_db

    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["database"] == "error"
    assert "db.internal" not in resp.text
