"""JWT helpers identifying the owner of a request.

Token issuance belongs to the auth service; ``create_access_token`` exists so
internal tools and tests can mint tokens signed with the shared secret.
"""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from jose import jwt

from budget_ledger.config import settings


def create_access_token(user_id: UUID, expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: User ID to encode in token
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.jwt_access_expire_minutes
        )

    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        JWTError: If token is invalid or expired
    """
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def get_user_id_from_token(token: str) -> UUID:
    """
    Extract user ID from an access token.

    Raises:
        JWTError: If token is invalid
        ValueError: If user ID is missing or token is not an access token
    """
    payload = decode_token(token)

    if payload.get("type") != "access":
        raise ValueError("Invalid token type")

    user_id_str = payload.get("sub")
    if not user_id_str:
        raise ValueError("Token missing user ID")

    return UUID(user_id_str)
