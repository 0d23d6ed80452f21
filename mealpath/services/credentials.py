"""Credential hashing and access-token issuance.

Passwords are stored as salted PBKDF2-SHA256 digests. Access tokens are
HS256 JWTs bound to ``{account_id, role}``.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time
from typing import Any

import jwt

from mealpath.config import get_settings

_PBKDF2_ITERATIONS = 240_000
_HASH_SCHEME = "pbkdf2_sha256"


def hash_password(password: str) -> str:
    """Return ``scheme$iterations$salt$digest`` for the given password."""
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("ascii"), _PBKDF2_ITERATIONS
    )
    return f"{_HASH_SCHEME}${_PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of a password against a stored hash."""
    try:
        scheme, iterations, salt, expected = password_hash.split("$", 3)
    except ValueError:
        return False
    if scheme != _HASH_SCHEME:
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("ascii"), int(iterations)
    )
    return hmac.compare_digest(digest.hex(), expected)


def issue_token(account_id: str, role: str) -> str:
    """Create a signed JWT representing an authenticated account.

    Args:
        account_id: Identifier embedded in the ``sub`` claim.
        role: Account role embedded in the ``role`` claim.

    Returns:
        The encoded JWT string.
    """
    settings = get_settings()
    now = int(time.time())
    payload: dict[str, Any] = {
        "iss": settings.jwt_issuer,
        "sub": account_id,
        "role": role,
        "iat": now,
        "exp": now + settings.jwt_ttl_seconds,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def decode_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT returning its payload.

    Raises:
        jwt.PyJWTError: When the token is invalid, expired, or from another issuer.
    """
    settings = get_settings()
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=["HS256"],
        issuer=settings.jwt_issuer,
    )
