"""TaskDesk CLI — database setup and a thin API client.

Usage:
    taskdesk init-db                                  # Create tables + default admin
    taskdesk create-user "Ann" ann@example.com -r MANAGER
    taskdesk serve --reload                           # Run the API server
    taskdesk login admin@taskdesk.local               # Print an access token
    taskdesk tasks --status OPEN                      # List tasks (uses TASKDESK_TOKEN)
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("TASKDESK_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.Client:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.Client(base_url=_api_url(), headers=headers, timeout=30.0)


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _unwrap(resp: httpx.Response):
    """Return the envelope's data, or exit with its message."""
    try:
        body = resp.json()
    except ValueError:
        _fail(f"HTTP {resp.status_code}: {resp.text[:200]}")
    if not body.get("success", False):
        errors = body.get("errors")
        detail = f" {json.dumps(errors)}" if errors else ""
        _fail(f"HTTP {resp.status_code}: {body.get('message')}{detail}")
    return body.get("data")


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k) or "—")[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="taskdesk", prog_name="taskdesk")
def main():
    """TaskDesk — role-based task management."""


# ---------------------------------------------------------------------------
# Database commands (talk to the DB directly, using TASKDESK_DATABASE_URL)
# ---------------------------------------------------------------------------


async def _init_db() -> Optional[str]:
    from taskdesk.bootstrap import create_tables, seed_admin
    from taskdesk.db.engine import async_session_factory, engine

    await create_tables(engine)
    async with async_session_factory() as session:
        admin = await seed_admin(session)
    await engine.dispose()
    return admin.email if admin else None


@main.command("init-db")
def init_db():
    """Create all tables and the default admin account."""
    created = asyncio.run(_init_db())
    click.secho("Tables ready.", fg="green")
    if created:
        click.secho(
            f"Default admin created: {created}. Change its password now.",
            fg="yellow",
        )


async def _create_user(name: str, email: str, password: str, role: str) -> int:
    from taskdesk.db.engine import async_session_factory, engine
    from taskdesk.db.models import Role
    from taskdesk.services.user_service import UserService

    async with async_session_factory() as session:
        user = await UserService(session).create_user(
            name, email, password, Role(role)
        )
    await engine.dispose()
    return user.id


@main.command("create-user")
@click.argument("name")
@click.argument("email")
@click.option(
    "--role", "-r",
    type=click.Choice(["ADMIN", "MANAGER", "USER"], case_sensitive=False),
    default="USER",
    show_default=True,
)
@click.password_option()
def create_user(name: str, email: str, role: str, password: str):
    """Create an account directly in the database."""
    from taskdesk.errors import AppError

    try:
        user_id = asyncio.run(_create_user(name, email, password, role.upper()))
    except AppError as e:
        _fail(e.message)
    click.secho(f"Created {role.upper()} #{user_id} <{email}>", fg="green")


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: TASKDESK_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: TASKDESK_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from taskdesk.config import settings

    uvicorn.run(
        "taskdesk.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# API commands
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.password_option(confirmation_prompt=False)
def login(email: str, password: str):
    """Log in and print an access token (export it as TASKDESK_TOKEN)."""
    with _client() as client:
        data = _unwrap(
            client.post("/api/auth/login", json={"email": email, "password": password})
        )
    click.echo(data["access_token"])


@main.command()
@click.option("--status", type=click.Choice(["OPEN", "IN_PROGRESS", "DONE"]))
@click.option("--priority", type=click.Choice(["LOW", "MEDIUM", "HIGH"]))
@click.option("--page", default=0, show_default=True)
@click.option("--size", default=20, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def tasks(status: Optional[str], priority: Optional[str], page: int, size: int,
          as_json: bool):
    """List tasks visible to the logged-in account."""
    token = os.environ.get("TASKDESK_TOKEN")
    if not token:
        _fail("TASKDESK_TOKEN is not set (run `taskdesk login` first)")

    params = {"page": page, "size": size}
    if status:
        params["status"] = status
    if priority:
        params["priority"] = priority

    with _client(token) as client:
        data = _unwrap(client.get("/api/tasks", params=params))

    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
        return

    _print_table(
        data["content"],
        [
            ("ID", "id", 5),
            ("TITLE", "title", 40),
            ("STATUS", "status", 12),
            ("PRIORITY", "priority", 8),
            ("ASSIGNEE", "assigned_user_name", 20),
        ],
    )
    click.echo(
        f"\npage {data['page_number'] + 1}/{max(data['total_pages'], 1)}"
        f" · {data['total_elements']} task(s)"
    )


if __name__ == "__main__":
    main()
