"""Security helpers: password hashing and HS256 access tokens.

Tokens are encoded and verified with the standard library only. Passwords
are hashed with passlib using the schemes listed in
``PASSWORD_HASH_SCHEMES``; the first scheme hashes new passwords and the
others are still accepted for verification.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

from passlib.context import CryptContext

from .config import Settings, get_settings
from .exceptions import InvalidTokenError, TokenExpiredError

# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


@lru_cache
def _password_context(schemes: tuple[str, ...]) -> CryptContext:
    return CryptContext(schemes=list(schemes), deprecated="auto")


def get_password_context(settings: Settings | None = None) -> CryptContext:
    settings = settings or get_settings()
    return _password_context(tuple(settings.password_schemes_list))


def hash_password(plaintext: str, *, settings: Settings | None = None) -> str:
    return get_password_context(settings).hash(plaintext)


def verify_password(plaintext: str, digest: str, *, settings: Settings | None = None) -> bool:
    """Check a password against a stored digest.

    Digests in an unknown format verify as False.
    """
    try:
        return get_password_context(settings).verify(plaintext, digest)
    except (ValueError, TypeError):
        return False


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


def _base64url_encode(data: bytes) -> str:
    """Encode bytes using base64 URL-safe encoding without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _base64url_decode(data: str) -> bytes:
    """Decode a base64url-encoded string, handling missing padding."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(signing_input: bytes, secret: str) -> str:
    signature = hmac.new(secret.encode("utf-8"), signing_input, hashlib.sha256).digest()
    return _base64url_encode(signature)


def _encode_jwt(payload: dict[str, Any], *, secret: str, algorithm: str = "HS256") -> str:
    """Minimal HS256 JWT encoder."""
    if algorithm != "HS256":
        raise ValueError("Only HS256 algorithm is supported")

    header = {"alg": algorithm, "typ": "JWT"}
    encoded_header = _base64url_encode(
        json.dumps(header, separators=(",", ":"), sort_keys=True).encode("utf-8")
    )
    encoded_payload = _base64url_encode(
        json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    )
    signing_input = f"{encoded_header}.{encoded_payload}".encode("ascii")
    return f"{encoded_header}.{encoded_payload}.{_sign(signing_input, secret)}"


def _decode_jwt(token: str, *, settings: Settings) -> dict[str, Any]:
    """Decode and validate an HS256 JWT produced by ``_encode_jwt``.

    Raises:
        InvalidTokenError: Wrong segment count, signature or payload.
        TokenExpiredError: ``exp`` is in the past.
    """
    try:
        header_b64, payload_b64, signature_b64 = token.split(".")
    except ValueError as exc:
        raise InvalidTokenError("Invalid token format") from exc

    # compare_digest only takes ASCII strings
    try:
        signing_input = f"{header_b64}.{payload_b64}".encode("ascii")
        signature_b64.encode("ascii")
    except UnicodeEncodeError as exc:
        raise InvalidTokenError("Invalid token format") from exc

    expected_sig_b64 = _sign(signing_input, settings.SECRET_KEY)
    if not hmac.compare_digest(signature_b64, expected_sig_b64):
        raise InvalidTokenError("Invalid token signature")

    try:
        payload = json.loads(_base64url_decode(payload_b64))
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidTokenError("Invalid token payload") from exc

    if not isinstance(payload, dict):
        raise InvalidTokenError("Invalid token payload")

    exp = payload.get("exp")
    if not isinstance(exp, int):
        raise InvalidTokenError("Invalid token expiration")

    if int(datetime.now(UTC).timestamp()) >= exp:
        raise TokenExpiredError()

    return payload


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    expires_in: int
    token_type: str = "bearer"


def create_access_token(
    *,
    user_id: str,
    email: str,
    role: str,
    tenant_id: str,
    settings: Settings | None = None,
) -> IssuedToken:
    """Sign an access token scoped to one tenant membership."""
    settings = settings or get_settings()
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    claims = {
        "sub": user_id,
        "id": user_id,
        "email": email,
        "role": role,
        "tenant_id": tenant_id,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    token = _encode_jwt(claims, secret=settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return IssuedToken(
        access_token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
