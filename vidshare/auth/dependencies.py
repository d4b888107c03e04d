"""FastAPI dependencies that resolve the acting user from the request."""

import logging
from typing import Annotated

from fastapi import Cookie, Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.auth.security import verify_token
from vidshare.db import crud
from vidshare.db.models import User
from vidshare.db.session import get_session

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


def _extract_token(authorization: str | None, access_cookie: str | None) -> str | None:
    """Prefer an ``Authorization: Bearer`` header, fall back to the cookie."""
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return access_cookie or None


async def require_user(
    authorization: Annotated[str | None, Header()] = None,
    access_cookie: Annotated[str | None, Cookie(alias=ACCESS_COOKIE)] = None,
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    FastAPI dependency that requires a valid authenticated user.

    Args:
        authorization: Authorization header value
        access_cookie: The access token cookie value
        db: Database session

    Returns:
        The authenticated User object

    Raises:
        HTTPException: 401 if the token is missing or invalid
    """
    token = _extract_token(authorization, access_cookie)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user_id = verify_token(token)
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid access token")

    user = await crud.get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return user


async def optional_user(
    authorization: Annotated[str | None, Header()] = None,
    access_cookie: Annotated[str | None, Cookie(alias=ACCESS_COOKIE)] = None,
    db: AsyncSession = Depends(get_session),
) -> User | None:
    """Like require_user, but anonymous (or invalid) credentials yield None."""
    token = _extract_token(authorization, access_cookie)
    if not token:
        return None

    user_id = verify_token(token)
    if not user_id:
        logger.debug("Ignoring invalid access token on public endpoint")
        return None

    return await crud.get_user_by_id(db, user_id)
