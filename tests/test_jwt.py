"""Token service tests — issue/verify round trip, expiry, tampering."""

from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from taskdesk.auth.jwt import (
    TokenExpired,
    TokenInvalid,
    create_access_token,
    verify_token,
)
from taskdesk.config import settings


def test_verify_returns_subject_right_after_issue():
    token = create_access_token("ann@example.com")
    assert verify_token(token) == "ann@example.com"


def test_expired_token_raises_token_expired():
    token = create_access_token("ann@example.com", expires_minutes=-1)
    with pytest.raises(TokenExpired):
        verify_token(token)


def test_token_carries_expiry_from_settings():
    token = create_access_token("ann@example.com")
    payload = pyjwt.decode(
        token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
    )
    assert payload["exp"] - payload["iat"] == settings.access_token_expire_minutes * 60


def test_tampered_signature_is_invalid():
    token = create_access_token("ann@example.com")
    head, body, sig = token.split(".")
    forged = ".".join([head, body, sig[::-1]])
    with pytest.raises(TokenInvalid):
        verify_token(forged)


def test_token_signed_with_other_secret_is_invalid():
    payload = {
        "sub": "ann@example.com",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
    }
    token = pyjwt.encode(payload, "some-other-secret-of-sufficient-length", algorithm="HS256")
    with pytest.raises(TokenInvalid):
        verify_token(token)


@pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "Bearer x"])
def test_malformed_token_is_invalid(garbage):
    with pytest.raises(TokenInvalid):
        verify_token(garbage)


def test_token_without_subject_is_invalid():
    token = pyjwt.encode(
        {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(TokenInvalid):
        verify_token(token)


def test_error_messages_do_not_leak_library_detail():
    with pytest.raises(TokenInvalid) as exc_info:
        verify_token("a.b.c")
    assert str(exc_info.value) == "Invalid token"
