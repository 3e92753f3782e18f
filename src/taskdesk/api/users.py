"""User API routes.

- GET /users                 → ADMIN: all (filterable); MANAGER: active USERs
- GET /users/me              → own profile
- PUT /users/me/password     → change own password
- PUT /users/{id}/role       → ADMIN
- PUT /users/{id}/status     → ADMIN (activate / deactivate)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.auth.dependencies import CurrentIdentity, get_current_user
from taskdesk.config import settings
from taskdesk.db.engine import get_db
from taskdesk.db.models import Role
from taskdesk.schemas.common import ApiResponse, PagedResponse
from taskdesk.schemas.user import PasswordUpdate, UserAdmin, UserProfile
from taskdesk.services.user_service import UserService

router = APIRouter(prefix="/users")


def _user_svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("", response_model=ApiResponse[PagedResponse])
async def list_users(
    role: Optional[Role] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    page: int = Query(0, ge=0),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_user_svc),
):
    """List accounts.

    The row shape depends on the caller: admins get UserAdmin rows,
    managers get UserSummary rows.
    """
    rows, total = await svc.list_users(
        identity, role=role, is_active=is_active, page=page, size=size
    )
    return ApiResponse.ok(
        "Users retrieved successfully",
        PagedResponse.build(rows, total, page, size),
    )


@router.get("/me", response_model=ApiResponse[UserProfile])
async def get_me(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_user_svc),
):
    user = await svc.get_profile(identity)
    return ApiResponse.ok(
        "Profile retrieved successfully", UserProfile.model_validate(user)
    )


@router.put("/me/password", response_model=ApiResponse)
async def update_password(
    body: PasswordUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_user_svc),
):
    await svc.update_password(identity, body.current_password, body.new_password)
    return ApiResponse.ok("Password updated successfully")


@router.put("/{user_id}/role", response_model=ApiResponse[UserAdmin])
async def update_role(
    user_id: int,
    new_role: Role = Query(..., alias="newRole"),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_user_svc),
):
    user = await svc.update_role(identity, user_id, new_role)
    return ApiResponse.ok(
        "User role updated successfully", UserAdmin.model_validate(user)
    )


@router.put("/{user_id}/status", response_model=ApiResponse[UserAdmin])
async def update_status(
    user_id: int,
    is_active: bool = Query(..., alias="isActive"),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_user_svc),
):
    user = await svc.set_active(identity, user_id, is_active)
    message = (
        "User activated successfully" if is_active else "User deactivated successfully"
    )
    return ApiResponse.ok(message, UserAdmin.model_validate(user))
