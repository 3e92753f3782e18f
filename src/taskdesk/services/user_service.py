"""User service — accounts, login and self-service.

Login distinguishes two failures on purpose:
- wrong email or password → Unauthorized("Invalid credentials")
- right password, deactivated account → Forbidden (deactivated)
Both are logged under their own event names; neither tells the client
whether the email exists.
"""

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.auth import policy
from taskdesk.auth.dependencies import DEACTIVATED_MESSAGE, CurrentIdentity
from taskdesk.auth.password import hash_password, verify_password
from taskdesk.db.models import Role, User
from taskdesk.db.store import TaskStore, UserStore
from taskdesk.errors import BadRequest, Forbidden, NotFound, Unauthorized
from taskdesk.schemas.user import UserAdmin, UserSummary

logger = structlog.get_logger()


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserStore(db)
        self.tasks = TaskStore(db)

    async def _get_or_404(self, user_id: int) -> User:
        user = await self.users.get(user_id)
        if user is None:
            raise NotFound.for_resource("User", "id", user_id)
        return user

    # ─── Accounts ────────────────────────────────────────

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: Optional[Role] = None,
    ) -> User:
        """Create an account without a policy check (bootstrap, CLI)."""
        if await self.users.get_by_email(email):
            raise BadRequest("Email already in use")
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=(role or Role.USER).value,
            is_active=True,
        )
        await self.users.add(user)
        await self.db.commit()
        return user

    async def register_user(
        self,
        identity: CurrentIdentity,
        name: str,
        email: str,
        password: str,
        role: Optional[Role] = None,
    ) -> User:
        policy.can_register_user(identity.actor).enforce()
        user = await self.create_user(name, email, password, role)
        logger.info(
            "user.registered",
            user_id=user.id,
            role=user.role,
            by=identity.user_id,
        )
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check login credentials and return the account."""
        user = await self.users.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("auth.bad_credentials")
            raise Unauthorized("Invalid credentials")
        if not user.is_active:
            logger.warning("auth.deactivated_login", user_id=user.id)
            raise Forbidden(DEACTIVATED_MESSAGE)
        logger.info("auth.login", user_id=user.id)
        return user

    # ─── Reads ───────────────────────────────────────────

    async def list_users(
        self,
        identity: CurrentIdentity,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        page: int = 0,
        size: int = 10,
    ) -> tuple[list, int]:
        """Users visible to the caller, rendered for the caller's view.

        ADMIN gets UserAdmin rows with the optional filters applied.
        MANAGER gets UserSummary rows of active USER accounts; the
        filters are ignored.
        """
        view = policy.user_list_view(identity.actor)
        if view == policy.UserListView.FULL:
            users, total = await self.users.find_filtered(
                role=role, is_active=is_active, page=page, size=size
            )
            return [UserAdmin.model_validate(u) for u in users], total
        if view == policy.UserListView.SUMMARY:
            users, total = await self.users.find_filtered(
                role=Role.USER, is_active=True, page=page, size=size
            )
            return [UserSummary.model_validate(u) for u in users], total
        raise Forbidden("Access denied: Users cannot list accounts")

    async def get_profile(self, identity: CurrentIdentity) -> User:
        return await self._get_or_404(identity.user_id)

    # ─── Self-service ────────────────────────────────────

    async def update_password(
        self,
        identity: CurrentIdentity,
        current_password: str,
        new_password: str,
    ) -> None:
        policy.can_update_own_password(identity.actor).enforce()
        user = await self._get_or_404(identity.user_id)
        if not verify_password(current_password, user.password_hash):
            logger.warning("user.password_change_rejected", user_id=user.id)
            raise Unauthorized("Current password is incorrect")
        user.password_hash = hash_password(new_password)
        await self.db.commit()
        logger.info("user.password_changed", user_id=user.id)

    # ─── Administration ──────────────────────────────────

    async def update_role(
        self, identity: CurrentIdentity, user_id: int, role: Role
    ) -> User:
        """Change an account's role.

        Tasks may only be assigned to USER accounts, so a USER who still
        holds assigned tasks cannot be moved to another role.
        """
        user = await self._get_or_404(user_id)
        policy.can_manage_users(identity.actor).enforce()
        role = Role(role)
        if (
            user.role == Role.USER
            and role != Role.USER
            and await self.tasks.has_assigned_tasks(user.id)
        ):
            raise BadRequest(
                "User has assigned tasks; reassign them before changing the role"
            )
        user.role = role.value
        await self.db.commit()
        logger.info("user.role_changed", user_id=user.id, role=user.role, by=identity.user_id)
        return user

    async def set_active(
        self, identity: CurrentIdentity, user_id: int, is_active: bool
    ) -> User:
        user = await self._get_or_404(user_id)
        policy.can_manage_users(identity.actor).enforce()
        user.is_active = is_active
        await self.db.commit()
        logger.info(
            "user.status_changed",
            user_id=user.id,
            is_active=is_active,
            by=identity.user_id,
        )
        return user
