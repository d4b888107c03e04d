"""Account endpoints: registration, sessions, profile and watch history."""

import logging
from typing import Annotated

from fastapi import APIRouter, Cookie, Depends, File, Form, Request, Response, UploadFile
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.api.dependencies import get_media_storage, pagination_params, read_upload
from vidshare.auth.dependencies import ACCESS_COOKIE, REFRESH_COOKIE, require_user
from vidshare.config import get_settings
from vidshare.db.models import User
from vidshare.db.session import get_session
from vidshare.media import MediaStorage
from vidshare.pagination import Page, PageParams
from vidshare.schemas import (
    AccountDetailsRequest,
    LoginRequest,
    PasswordChangeRequest,
    RefreshRequest,
    SessionResponse,
    UserResponse,
)
from vidshare.services import channels, users

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])
limiter = Limiter(key_func=get_remote_address)


def _set_session_cookies(response: Response, session: users.SessionTokens) -> None:
    settings = get_settings()
    is_prod = settings.env == "prod"

    response.set_cookie(
        key=ACCESS_COOKIE,
        value=session.access_token,
        httponly=True,
        samesite="lax",
        secure=is_prod,
        max_age=settings.access_token_ttl_seconds,
    )
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=session.refresh_token,
        httponly=True,
        samesite="lax",
        secure=is_prod,
        max_age=settings.refresh_token_ttl_seconds,
    )


def _session_response(session: users.SessionTokens) -> SessionResponse:
    return SessionResponse(
        user=UserResponse.model_validate(session.user),
        access_token=session.access_token,
        refresh_token=session.refresh_token,
    )


@router.post("/register", status_code=201, response_model=UserResponse)
@limiter.limit("20/minute")
async def register(
    request: Request,
    username: Annotated[str, Form()],
    email: Annotated[str, Form()],
    full_name: Annotated[str, Form()],
    password: Annotated[str, Form()],
    avatar: UploadFile | None = File(None),
    cover_image: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_media_storage),
):
    """
    Register a new account (multipart form with avatar and optional cover image).

    Rate limit: 20 requests per minute per IP.
    """
    return await users.register_user(
        db,
        storage,
        username=username,
        email=email,
        full_name=full_name,
        password=password,
        avatar=await read_upload(avatar),
        cover_image=await read_upload(cover_image),
    )


@router.post("/login", response_model=SessionResponse)
@limiter.limit("20/minute")
async def login(
    request: Request,
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
):
    """
    Log in with username or email and password.

    Issues an access/refresh token pair, both in the body and as cookies.

    Rate limit: 20 requests per minute per IP.
    """
    session = await users.login_user(
        db, body.password, username=body.username, email=body.email
    )
    _set_session_cookies(response, session)
    return _session_response(session)


@router.post("/logout")
@limiter.limit("20/minute")
async def logout(
    request: Request,
    response: Response,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Revoke the stored refresh token and clear the session cookies."""
    await users.logout_user(db, user)
    response.delete_cookie(key=ACCESS_COOKIE, httponly=True, samesite="lax")
    response.delete_cookie(key=REFRESH_COOKIE, httponly=True, samesite="lax")
    return {"message": "Logged out successfully"}


@router.post("/refresh-token", response_model=SessionResponse)
@limiter.limit("30/minute")
async def refresh_token(
    request: Request,
    response: Response,
    body: RefreshRequest | None = None,
    refresh_cookie: Annotated[str | None, Cookie(alias=REFRESH_COOKIE)] = None,
    db: AsyncSession = Depends(get_session),
):
    """
    Rotate the session using the refresh token from the body or cookie.

    Rate limit: 30 requests per minute per IP.
    """
    token = (body.refresh_token if body else None) or refresh_cookie
    session = await users.refresh_session(db, token)
    _set_session_cookies(response, session)
    return _session_response(session)


@router.post("/change-password")
@limiter.limit("10/minute")
async def change_password(
    request: Request,
    body: PasswordChangeRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Change the current user's password."""
    await users.change_password(db, user, body.current_password, body.new_password)
    return {"message": "Password changed successfully"}


@router.get("/me", response_model=UserResponse)
@limiter.limit("60/minute")
async def get_me(request: Request, user: User = Depends(require_user)):
    """
    Get the current authenticated user's account.

    Rate limit: 60 requests per minute per IP.
    """
    return user


@router.patch("/me", response_model=UserResponse)
@limiter.limit("30/minute")
async def update_me(
    request: Request,
    body: AccountDetailsRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Update full name and email."""
    return await users.update_account_details(db, user, body.full_name, body.email)


@router.patch("/me/avatar", response_model=UserResponse)
@limiter.limit("10/minute")
async def update_avatar(
    request: Request,
    avatar: UploadFile | None = File(None),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_media_storage),
):
    """Replace the avatar; the previous file is removed afterwards."""
    return await users.update_avatar(db, storage, user, await read_upload(avatar))


@router.patch("/me/cover-image", response_model=UserResponse)
@limiter.limit("10/minute")
async def update_cover_image(
    request: Request,
    cover_image: UploadFile | None = File(None),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_media_storage),
):
    """Replace the cover image; the previous file is removed afterwards."""
    return await users.update_cover_image(
        db, storage, user, await read_upload(cover_image)
    )


@router.get("/history", response_model=Page)
@limiter.limit("60/minute")
async def get_history(
    request: Request,
    params: PageParams = Depends(pagination_params),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """The current user's watch history, most recent first."""
    return await channels.get_watch_history(db, user.id, params)


@router.delete("/history")
@limiter.limit("10/minute")
async def clear_history(
    request: Request,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Clear the current user's watch history."""
    removed = await channels.clear_watch_history(db, user.id)
    return {"removed": removed}
