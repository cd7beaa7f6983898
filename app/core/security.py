"""Bearer token handling.

Tokens are issued by the identity provider with ``sub`` set to the local
user id. ``create_access_token`` exists for operator scripts and tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from app.core.config import settings
from app.core.exceptions import UnauthenticatedError


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Creates a signed access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and validate an access token.

    Raises:
        UnauthenticatedError: If the token is invalid, expired or not an access token
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise UnauthenticatedError()

    if payload.get("type") != "access":
        raise UnauthenticatedError("Invalid token type")

    return payload
