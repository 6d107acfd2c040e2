"""
Password hashing and access tokens.

Passwords are hashed with bcrypt. Access tokens are HS256 JWTs carrying the user
id (as both ``id`` and ``userId`` for older clients), email and role.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
import jwt

from advancia_pay.core.errors import AuthenticationError
from advancia_pay.server.core.config import SecurityConfig, settings


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.security.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_password(length: int = 24) -> str:
    """Random password for accounts created on the user's behalf."""
    return secrets.token_urlsafe(length)


def create_access_token(
    *, user_id: str, email: str, role: str, config: Optional[SecurityConfig] = None
) -> str:
    """
    Issue a signed access token.

    Args:
        user_id: Subject user id
        email: User email
        role: User role at issue time
        config: Security settings (defaults to the application settings)

    Returns:
        Encoded JWT string
    """
    config = config or settings.security
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "userId": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + timedelta(hours=config.jwt_expires_hours),
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def decode_access_token(token: str, config: Optional[SecurityConfig] = None) -> dict[str, Any]:
    """
    Validate a token and return its claims.

    Raises:
        AuthenticationError: expired, malformed or wrongly signed token.
    """
    config = config or settings.security
    try:
        payload = jwt.decode(token, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Token expired.") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid token.") from e

    if not (payload.get("id") or payload.get("userId")):
        raise AuthenticationError("Invalid token.")
    return payload


def token_subject(payload: dict[str, Any]) -> str:
    return str(payload.get("id") or payload.get("userId"))
