"""Test fixtures — a fresh in-memory database per test.

Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own SQLite in-memory engine (StaticPool keeps the
   single connection alive, so every session sees the same database).
2. Tables are created from the ORM metadata; nothing leaks between tests.
3. The app's get_db dependency is overridden to yield the test session,
   so HTTP calls and direct service calls share one identity map.

Auth is NOT mocked: tests mint real tokens with create_access_token and
send them as bearer headers, so the whole gate runs on every request.
"""

import os

os.environ.setdefault("TASKDESK_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("TASKDESK_BCRYPT_ROUNDS", "4")
os.environ.setdefault("TASKDESK_JWT_SECRET", "test-secret-key-with-enough-length-for-hs256")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from taskdesk.auth.dependencies import CurrentIdentity  # noqa: E402
from taskdesk.auth.jwt import create_access_token  # noqa: E402
from taskdesk.db.engine import get_db  # noqa: E402
from taskdesk.db.models import Base, Role, Task, TaskPriority, TaskStatus, User  # noqa: E402
from taskdesk.main import app  # noqa: E402
from taskdesk.services.user_service import UserService  # noqa: E402

PASSWORD = "password_123"


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a brand-new in-memory database."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client with the app's get_db pointed at the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ─── Accounts ────────────────────────────────────────────


@pytest_asyncio.fixture()
async def make_user(db_session):
    """Factory: create an account with the given role."""
    svc = UserService(db_session)
    counter = {"n": 0}

    async def _make(
        role: Role = Role.USER,
        name: str | None = None,
        active: bool = True,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = await svc.create_user(
            name=name or f"{role.value.title()} {n}",
            email=f"{role.value.lower()}{n}@example.com",
            password=PASSWORD,
            role=role,
        )
        if not active:
            user.is_active = False
            await db_session.commit()
        return user

    return _make


@pytest_asyncio.fixture()
async def admin(make_user):
    return await make_user(Role.ADMIN, name="Alice Admin")


@pytest_asyncio.fixture()
async def manager(make_user):
    return await make_user(Role.MANAGER, name="Mona Manager")


@pytest_asyncio.fixture()
async def worker(make_user):
    return await make_user(Role.USER, name="Wes Worker")


@pytest_asyncio.fixture()
async def other_worker(make_user):
    return await make_user(Role.USER, name="Olga Other")


@pytest_asyncio.fixture()
async def make_task(db_session):
    """Factory: insert a task directly (bypassing policy) for setup."""

    async def _make(
        creator: User,
        assignee: User | None = None,
        status: TaskStatus = TaskStatus.OPEN,
        priority: TaskPriority = TaskPriority.MEDIUM,
        title: str = "Write report",
    ) -> Task:
        task = Task(
            title=title,
            description="",
            status=status.value,
            priority=priority.value,
            created_by=creator,
            assigned_to=assignee,
        )
        db_session.add(task)
        await db_session.commit()
        return task

    return _make


def auth_headers(user: User) -> dict:
    """Bearer header carrying a freshly minted token for `user`."""
    return {"Authorization": f"Bearer {create_access_token(user.email)}"}


def identity_of(user: User) -> CurrentIdentity:
    return CurrentIdentity.from_user(user)
