"""Hashing and token utilities."""
from __future__ import annotations

import hashlib
from datetime import timedelta
from typing import Any

from jose import jwt

from pinwatch.core.settings import settings
from pinwatch.db.time import utcnow

VERIFIER_ROLE = "verifier"


def hash_key(value: str) -> str:
    """Return a SHA-256 hex digest of the provided value."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def hash_client_key(client_ip: str, salt: str | None = None) -> str:
    """Return the salted hash used to key per-client counters.

    Raw client addresses are never persisted; only this digest is.
    """
    return hash_key(client_ip + (settings.rate_salt if salt is None else salt))


def create_verifier_token(
    uid: str,
    role: str = VERIFIER_ROLE,
    expires_minutes: int | None = None,
) -> str:
    """Issue a signed bearer token for a moderation account.

    Args:
        uid: Stable identifier of the verifier.
        role: Role claim carried in the token.
        expires_minutes: Lifetime override, defaults to settings.

    Returns:
        Encoded JWT string.
    """
    lifetime = expires_minutes or settings.verifier_token_expire_minutes
    claims = {
        "sub": uid,
        "role": role,
        "exp": utcnow() + timedelta(minutes=lifetime),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a bearer token, raising JWTError when invalid."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
