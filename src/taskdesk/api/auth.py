"""Auth API — login and admin-only registration.

- POST /auth/login    → email/password → JWT access token (public)
- POST /auth/register → create an account with a role (ADMIN only)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.auth.dependencies import CurrentIdentity, get_current_user
from taskdesk.auth.jwt import create_access_token
from taskdesk.config import settings
from taskdesk.db.engine import get_db
from taskdesk.schemas.auth import LoginRequest, TokenResponse
from taskdesk.schemas.common import ApiResponse
from taskdesk.schemas.user import RegisterRequest, UserAdmin
from taskdesk.services.user_service import UserService

router = APIRouter(prefix="/auth")


def _user_svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=ApiResponse[TokenResponse])
async def login(body: LoginRequest, svc: UserService = Depends(_user_svc)):
    """Login with email and password → JWT access token."""
    user = await svc.authenticate(body.email, body.password)
    token = TokenResponse(
        access_token=create_access_token(user.email),
        expires_in=settings.access_token_expire_minutes * 60,
    )
    return ApiResponse.ok("Authentication successful", token)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=ApiResponse[UserAdmin], status_code=201)
async def register(
    body: RegisterRequest,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_user_svc),
):
    """Create a new account. The role defaults to USER."""
    user = await svc.register_user(
        identity,
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role,
    )
    return ApiResponse.ok("User registered successfully", UserAdmin.model_validate(user))
