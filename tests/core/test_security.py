"""Tests for password hashing and access tokens."""

from __future__ import annotations

import pytest

from src.clinic.core.config import Settings
from src.clinic.core.exceptions import InvalidTokenError, TokenExpiredError
from src.clinic.core.security import (
    _decode_jwt,
    _encode_jwt,
    create_access_token,
    hash_password,
    verify_password,
)


@pytest.fixture
def settings() -> Settings:
    return Settings(SECRET_KEY="test-secret-key-that-is-at-least-32-characters", ACCESS_TOKEN_EXPIRE_MINUTES=5)


# --- passwords ---


def test_hash_password_is_not_plaintext(settings):
    digest = hash_password("secret123", settings=settings)
    assert digest != "secret123"
    assert digest.startswith("$pbkdf2-sha256$")


def test_verify_password_roundtrip(settings):
    digest = hash_password("secret123", settings=settings)
    assert verify_password("secret123", digest, settings=settings) is True
    assert verify_password("wrong-password", digest, settings=settings) is False


def test_verify_password_unknown_digest_is_false(settings):
    assert verify_password("secret123", "not-a-hash", settings=settings) is False


# --- tokens ---


def test_access_token_carries_tenant_claims(settings):
    issued = create_access_token(
        user_id="user-1",
        email="admin@abc.com",
        role="ADMIN",
        tenant_id="tenant-1",
        settings=settings,
    )
    assert issued.token_type == "bearer"
    assert issued.expires_in == 300

    payload = _decode_jwt(issued.access_token, settings=settings)
    assert payload["sub"] == "user-1"
    assert payload["id"] == "user-1"
    assert payload["tenant_id"] == "tenant-1"
    assert payload["role"] == "ADMIN"
    assert payload["exp"] > payload["iat"]


def test_decode_rejects_tampered_signature(settings):
    token = create_access_token(
        user_id="user-1", email="a@abc.com", role="ADMIN", tenant_id="t", settings=settings
    ).access_token
    header, payload, signature = token.split(".")
    flipped = "A" if signature[-1] != "A" else "B"
    tampered = f"{header}.{payload}.{signature[:-1]}{flipped}"
    with pytest.raises(InvalidTokenError):
        _decode_jwt(tampered, settings=settings)


def test_decode_rejects_other_secret(settings):
    other = Settings(SECRET_KEY="another-secret-key-that-is-32-characters-long")
    token = create_access_token(
        user_id="user-1", email="a@abc.com", role="ADMIN", tenant_id="t", settings=other
    ).access_token
    with pytest.raises(InvalidTokenError):
        _decode_jwt(token, settings=settings)


@pytest.mark.parametrize("token", ["only.two", "é.a.b", "a.b.sïg"])
def test_decode_rejects_malformed_token(settings, token):
    with pytest.raises(InvalidTokenError):
        _decode_jwt(token, settings=settings)


def test_decode_rejects_expired_token(settings):
    token = _encode_jwt({"sub": "user-1", "iat": 1, "exp": 2}, secret=settings.SECRET_KEY)
    with pytest.raises(TokenExpiredError):
        _decode_jwt(token, settings=settings)


def test_decode_requires_integer_exp(settings):
    token = _encode_jwt({"sub": "user-1", "exp": "tomorrow"}, secret=settings.SECRET_KEY)
    with pytest.raises(InvalidTokenError):
        _decode_jwt(token, settings=settings)
