"""Authentication dependencies for FastAPI."""
from __future__ import annotations

from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException, status

from storefront.database.collection_store import CollectionStore, get_store
from storefront.entities.user import User
from storefront.repositories.user import UserRepository
from storefront.services.auth import decode_access_token


async def get_current_user_id(
    access_token: Optional[str] = Cookie(None),
    authorization: Optional[str] = Header(None),
) -> str:
    """Extract the user ID from the bearer token (header first, then cookie).

    Raises:
        HTTPException: If no valid token is found
    """
    token = None
    if authorization and authorization.startswith("Bearer "):
        token = authorization.replace("Bearer ", "", 1)
    elif access_token:
        token = access_token

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(token)
    user_id: Optional[str] = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    return user_id


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    store: CollectionStore = Depends(get_store),
) -> User:
    """Load the authenticated user. Inactive accounts are rejected."""
    user = UserRepository(store).find_by_id(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is deactivated",
        )
    return user
