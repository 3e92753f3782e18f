"""JWT token creation and verification.

JWT (JSON Web Token) provides stateless authentication: the token binds
a subject (the account email) to an expiry and is HMAC-signed, so its
validity is a pure function of signature and clock. No server state.

There is no revocation list: a token stays valid until it expires.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from taskdesk.config import settings

ACCESS_TOKEN_TYPE = "access"


class TokenError(Exception):
    """Raised when token verification fails."""


class TokenInvalid(TokenError):
    """Bad signature, malformed token or missing claims."""


class TokenExpired(TokenError):
    """Token was valid but its expiry has passed."""


def create_access_token(
    subject_email: str,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a signed access token for `subject_email`."""
    issued_at = datetime.now(timezone.utc)
    expires = issued_at + timedelta(
        minutes=expires_minutes
        if expires_minutes is not None
        else settings.access_token_expire_minutes
    )
    payload = {
        "sub": subject_email,
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": expires,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> str:
    """Verify a token and return its subject email.

    Raises TokenExpired or TokenInvalid. The messages are fixed so that
    library internals never reach the caller.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpired("Token has expired")
    except jwt.InvalidTokenError:
        raise TokenInvalid("Invalid token")

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise TokenInvalid("Invalid token")
    if payload.get("type", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE:
        raise TokenInvalid("Invalid token")
    return subject
