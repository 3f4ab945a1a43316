"""
Actor resolution for the room booking API.

Credential management and token issuance belong to an external identity
service. This module only verifies the bearer token it issued and turns the
claims into an ``Actor`` for the booking core to authorize against.
"""

from typing import Optional
from uuid import UUID
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone

from ..config import get_settings
from ....domain.errors import ForbiddenError
from ....domain.value_objects.actor import Actor, ActorRole


# Security scheme for bearer token authentication
security = HTTPBearer(auto_error=False)

ACCESS_TOKEN_EXPIRATION_HOURS = 8


class AuthenticationError(Exception):
    """Raised when the bearer token cannot be trusted."""
    pass


def decode_actor(token: str) -> Actor:
    """
    Decode a bearer token into an Actor.

    Args:
        token: Encoded JWT with ``sub`` (identity UUID) and ``role`` claims

    Returns:
        Actor: The authenticated caller

    Raises:
        AuthenticationError: if the token is invalid, expired or malformed
    """
    settings = get_settings()

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        raise AuthenticationError(f"Invalid authentication token: {str(e)}") from e

    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError("Invalid token: missing subject")

    try:
        identity = UUID(subject)
        role = ActorRole(payload.get("role", ActorRole.USER.value))
    except ValueError as e:
        raise AuthenticationError("Invalid token: malformed claims") from e

    return Actor(identity=identity, role=role)


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Actor:
    """
    FastAPI dependency resolving the caller from the Authorization header.

    Raises:
        AuthenticationError: 401 if the token is missing or invalid
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing authentication token")

    return decode_actor(credentials.credentials)


async def get_admin_actor(actor: Actor = Depends(get_current_actor)) -> Actor:
    """
    Dependency for endpoints that require admin privileges.

    Raises:
        ForbiddenError: 403 if the actor is not an admin
    """
    if not actor.is_admin:
        raise ForbiddenError("Admin privileges required")

    return actor


def create_access_token(
    identity: UUID,
    role: ActorRole = ActorRole.USER,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token for tooling and tests.

    Args:
        identity: The caller identity
        role: The caller role
        expires_delta: Optional custom expiration time

    Returns:
        str: The encoded JWT token
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=ACCESS_TOKEN_EXPIRATION_HOURS))

    to_encode = {
        "sub": str(identity),
        "role": role.value,
        "exp": expire,
        "iat": now,
        "type": "access_token"
    }

    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
