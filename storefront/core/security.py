# storefront/core/security.py
import hashlib
import secrets
from datetime import timedelta
from typing import Any

import bcrypt
from jose import jwt

from storefront.core.clock import utcnow
from storefront.core.config import get_settings

settings = get_settings()

BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    """Return a bcrypt hash (utf-8 str) for storage in users.password_hash."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Check a plain password against a stored bcrypt hash.

    Accounts without a password (external identity provider) never match.
    """
    if not password_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def create_access_token(
    subject: int | str,
    claims: dict[str, Any] | None = None,
    expires_minutes: int | None = None,
) -> str:
    """
    Issue an HS256 access token.

    The token carries:
      - sub: user id (string)
      - exp: expiry (ACCESS_TOKEN_EXPIRE_MINUTES by default)
      - any extra claims (email, role)
    """
    minutes = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    payload: dict[str, Any] = dict(claims or {})
    payload["sub"] = str(subject)
    payload["exp"] = utcnow() + timedelta(minutes=minutes)
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and verify signature + expiry. Raises jose.JWTError."""
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])


def generate_reset_token() -> tuple[str, str]:
    """
    Create a password reset token.

    Returns:
        (raw_token, sha256_hex_digest) - only the digest is persisted.
    """
    raw = secrets.token_hex(32)
    return raw, hash_reset_token(raw)


def hash_reset_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
