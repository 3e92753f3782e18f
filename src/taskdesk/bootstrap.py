"""Startup seeding — make sure the system always has an administrator.

Only admins can register accounts, so an empty database would be
unusable. On startup (and via `taskdesk init-db`) a default ADMIN is
created from settings when no ADMIN exists yet. Idempotent.
"""

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from taskdesk.config import settings
from taskdesk.db.models import Base, Role, User
from taskdesk.db.store import UserStore
from taskdesk.services.user_service import UserService

logger = structlog.get_logger()


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_admin(db: AsyncSession) -> Optional[User]:
    """Create the default admin if there is none. Returns it, or None."""
    if await UserStore(db).any_with_role(Role.ADMIN):
        return None

    admin = await UserService(db).create_user(
        name=settings.admin_name,
        email=settings.admin_email,
        password=settings.admin_password,
        role=Role.ADMIN,
    )
    logger.warning(
        "bootstrap.admin_created",
        email=admin.email,
        hint="change the default admin password immediately",
    )
    return admin
