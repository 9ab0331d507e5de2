"""Authentication utilities: JWT access tokens and credential checks."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import HTTPException, status
from jose import JWTError, jwt

from storefront.config import settings
from storefront.database.collection_store import CollectionStore
from storefront.entities.base import utcnow
from storefront.entities.user import User
from storefront.repositories.user import UserRepository
from storefront.services.exceptions import InvalidCredentialsError
from storefront.utils.passwords import verify_password

logger = logging.getLogger(__name__)


def create_access_token(
    subject: str,
    role: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token.

    Args:
        subject: User ID to encode in the token
        role: Role claim, informational only (permissions are read from the user record)
        expires_delta: Token lifetime (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(subject),
        "exp": now + expires_delta,
        "iat": now,
        "type": "access",
    }
    if role:
        payload["role"] = role
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT access token.

    Raises:
        HTTPException: If the token is invalid, expired, or not an access token
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Could not validate credentials: {str(e)}",
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )
    return payload


def authenticate(store: CollectionStore, email: str, password: str) -> User:
    """Check an email/password pair and record the login.

    Raises:
        InvalidCredentialsError: Unknown email, wrong password or inactive account
    """
    repo = UserRepository(store)
    user = repo.find_by_email(email)
    if not user or not verify_password(password, user.password):
        logger.info("Failed login for %s", email)
        raise InvalidCredentialsError("Invalid credentials")
    if not user.is_active:
        raise InvalidCredentialsError("Account is deactivated")

    return repo.update(user, last_login=utcnow()) or user
