"""CLI tests — the API-client commands, against a mocked transport."""

import httpx
import pytest
from click.testing import CliRunner

from taskdesk.cli import main as cli


def _envelope(data, success=True, message="ok"):
    return {"success": success, "message": message, "data": data}


@pytest.fixture
def mock_api(monkeypatch):
    """Route the CLI's HTTP client to an in-process handler."""
    calls = []

    def install(handler):
        def _client(token=None):
            headers = {"Authorization": f"Bearer {token}"} if token else {}
            return httpx.Client(
                base_url="http://test",
                headers=headers,
                transport=httpx.MockTransport(lambda req: calls.append(req) or handler(req)),
            )

        monkeypatch.setattr(cli, "_client", _client)
        return calls

    return install


def test_login_prints_token(mock_api):
    calls = mock_api(lambda req: httpx.Response(
        200, json=_envelope({"access_token": "tok-123", "token_type": "bearer", "expires_in": 3600})
    ))
    result = CliRunner().invoke(cli.main, ["login", "ann@example.com", "--password", "pw"])
    assert result.exit_code == 0
    assert result.output.strip() == "tok-123"
    assert calls[0].url.path == "/api/auth/login"


def test_login_failure_exits_with_message(mock_api):
    mock_api(lambda req: httpx.Response(
        401, json=_envelope(None, success=False, message="Invalid credentials")
    ))
    result = CliRunner().invoke(cli.main, ["login", "ann@example.com", "--password", "bad"])
    assert result.exit_code == 1
    assert "Invalid credentials" in result.output


def test_tasks_requires_token(monkeypatch):
    monkeypatch.delenv("TASKDESK_TOKEN", raising=False)
    result = CliRunner().invoke(cli.main, ["tasks"])
    assert result.exit_code == 1
    assert "TASKDESK_TOKEN" in result.output


def test_tasks_prints_table(mock_api, monkeypatch):
    monkeypatch.setenv("TASKDESK_TOKEN", "tok-123")
    page = {
        "content": [
            {"id": 7, "title": "Ship release", "status": "OPEN",
             "priority": "HIGH", "assigned_user_name": "Wes Worker"},
        ],
        "page_number": 0,
        "page_size": 20,
        "total_elements": 1,
        "total_pages": 1,
        "last": True,
    }
    calls = mock_api(lambda req: httpx.Response(200, json=_envelope(page)))

    result = CliRunner().invoke(cli.main, ["tasks", "--status", "OPEN"])
    assert result.exit_code == 0
    assert "Ship release" in result.output
    assert "Wes Worker" in result.output
    assert "1 task(s)" in result.output
    assert calls[0].headers["Authorization"] == "Bearer tok-123"
    assert calls[0].url.params["status"] == "OPEN"
