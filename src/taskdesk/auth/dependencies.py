"""Authentication gate — FastAPI dependencies that resolve the caller.

Per request the gate moves through:

    NO_TOKEN ──(Bearer header)──▶ TOKEN_PRESENT ──▶ VERIFIED | REJECTED

A missing or rejected token never aborts the request here; the request
simply continues without an identity and `get_current_user` (the hard
dependency on protected routes) reports 401. That keeps a single
error-reporting path.

The resolved CurrentIdentity is passed explicitly into every service
call. There is no global security context.
"""

import enum
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.auth.jwt import TokenError, TokenExpired, verify_token
from taskdesk.auth.policy import Actor
from taskdesk.db.engine import get_db
from taskdesk.db.models import Role, User
from taskdesk.db.store import UserStore
from taskdesk.errors import Forbidden, Unauthorized

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "
DEACTIVATED_MESSAGE = "Account is deactivated. Please contact an administrator."


class GateState(str, enum.Enum):
    NO_TOKEN = "no_token"
    TOKEN_PRESENT = "token_present"
    VERIFIED = "verified"
    REJECTED = "rejected"


class CurrentIdentity:
    """The authenticated account making the request."""

    def __init__(
        self,
        user_id: int,
        email: str,
        name: str,
        role: Role,
        is_active: bool = True,
    ):
        self.user_id = user_id
        self.email = email
        self.name = name
        self.role = role
        self.is_active = is_active

    @classmethod
    def from_user(cls, user: User) -> "CurrentIdentity":
        return cls(
            user_id=user.id,
            email=user.email,
            name=user.name,
            role=Role(user.role),
            is_active=user.is_active,
        )

    @property
    def actor(self) -> Actor:
        return Actor(user_id=self.user_id, role=self.role)


@dataclass
class GateResult:
    state: GateState
    identity: Optional[CurrentIdentity] = None


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of an `Authorization: Bearer <token>` header."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


async def authenticate(authorization: Optional[str], users: UserStore) -> GateResult:
    """Run the gate for one Authorization header value."""
    token = extract_bearer(authorization)
    if token is None:
        return GateResult(GateState.NO_TOKEN)

    # TOKEN_PRESENT
    try:
        email = verify_token(token)
    except TokenError as e:
        logger.info(
            "auth.token_rejected",
            reason="expired" if isinstance(e, TokenExpired) else "invalid",
        )
        return GateResult(GateState.REJECTED)

    user = await users.get_by_email(email)
    if user is None:
        logger.info("auth.token_rejected", reason="unknown_subject")
        return GateResult(GateState.REJECTED)

    return GateResult(GateState.VERIFIED, CurrentIdentity.from_user(user))


async def get_current_user_optional(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Optional[CurrentIdentity]:
    """Soft dependency — the identity if one could be verified, else None.

    The gate result is memoised on request.state, so resolving twice in
    one request is a no-op.
    """
    result: Optional[GateResult] = getattr(request.state, "auth_gate", None)
    if result is None:
        result = await authenticate(authorization, UserStore(db))
        request.state.auth_gate = result
    return result.identity


async def get_current_user(
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
) -> CurrentIdentity:
    """Hard dependency — 401 without a verified identity, 403 if deactivated."""
    if identity is None:
        raise Unauthorized("Authentication required")
    if not identity.is_active:
        logger.warning("auth.deactivated_account", user_id=identity.user_id)
        raise Forbidden(DEACTIVATED_MESSAGE)
    return identity
