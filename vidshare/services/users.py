"""Account operations: registration, sessions, credentials and profile media."""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.auth.security import (
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    hash_password,
    open_refresh_token,
    seal_refresh_token,
    verify_password,
    verify_token,
)
from vidshare.db.crud import find_user_by_login, get_user_by_id
from vidshare.db.models import User
from vidshare.db.session import store_guard
from vidshare.errors import (
    Conflict,
    InvalidInput,
    NotFound,
    ReadFailed,
    ServiceError,
    Unauthorized,
    WriteFailed,
    require_text,
)
from vidshare.media import MediaStorage, MediaUpload, discard_media

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class SessionTokens:
    user: User
    access_token: str
    refresh_token: str


def _require_email(email: str | None) -> str:
    email = require_text(email, "Email").lower()
    local, _, domain = email.partition("@")
    if not local or "." not in domain:
        raise InvalidInput("Email is not valid")
    return email


def _require_password(password: str | None, field: str = "Password") -> str:
    if password is None or not password.strip():
        raise InvalidInput(f"{field} can not be empty")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"{field} must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


async def _commit_user(db: AsyncSession, user: User, action: str) -> None:
    """Commit pending user changes; a unique-constraint hit becomes Conflict."""
    async with store_guard(db, WriteFailed, action):
        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            raise Conflict("User with this username or email already exists") from exc
        await db.refresh(user)


async def _issue_session(db: AsyncSession, user: User) -> SessionTokens:
    """Mint a token pair and store the sealed refresh token on the user."""
    access_token = create_access_token(user.id)
    refresh_token = create_refresh_token(user.id)
    user.refresh_token_enc = seal_refresh_token(refresh_token)
    async with store_guard(db, WriteFailed, "store session"):
        await db.commit()
    return SessionTokens(user=user, access_token=access_token, refresh_token=refresh_token)


async def register_user(
    db: AsyncSession,
    storage: MediaStorage,
    username: str,
    email: str,
    full_name: str,
    password: str,
    avatar: MediaUpload | None,
    cover_image: MediaUpload | None = None,
) -> User:
    """
    Create a new account.

    The avatar is required, the cover image optional. Uploaded files are
    removed best-effort if the account can't be created.

    Raises:
        InvalidInput: If a required field is blank/invalid or the avatar is missing
        Conflict: If the username or email is already taken
        UpstreamFailed: If a media upload fails
        WriteFailed: If the record can't be stored
    """
    username = require_text(username, "Username").lower()
    email = _require_email(email)
    full_name = require_text(full_name, "Full name")
    password = _require_password(password)
    if avatar is None or not avatar.data:
        raise InvalidInput("Avatar file is required")

    if await find_user_by_login(db, username=username, email=email) is not None:
        raise Conflict("User with this username or email already exists")

    avatar_ref = await storage.upload(avatar, "avatars")
    cover_ref = None
    try:
        if cover_image is not None and cover_image.data:
            cover_ref = await storage.upload(cover_image, "covers")

        user = User(
            username=username,
            email=email,
            full_name=full_name,
            avatar_url=avatar_ref.url,
            avatar_public_id=avatar_ref.public_id,
            cover_image_url=cover_ref.url if cover_ref else None,
            cover_image_public_id=cover_ref.public_id if cover_ref else None,
            password_hash=hash_password(password),
        )
        db.add(user)
        await _commit_user(db, user, "create user")
    except ServiceError as exc:
        logger.warning(f"Registration failed for username={username}: {exc.message}")
        await discard_media(
            storage, avatar_ref.public_id, cover_ref.public_id if cover_ref else None
        )
        raise

    logger.info(f"User registered: user_id={user.id} username={username}")
    return user


async def login_user(
    db: AsyncSession,
    password: str,
    username: str | None = None,
    email: str | None = None,
) -> SessionTokens:
    """
    Authenticate by username or email and start a session.

    Raises:
        InvalidInput: If neither username nor email is given
        NotFound: If no matching user exists
        Unauthorized: If the password is wrong
    """
    if not (username and username.strip()) and not (email and email.strip()):
        raise InvalidInput("Username or email is required")
    if not password:
        raise InvalidInput("Password can not be empty")

    user = await find_user_by_login(
        db, username=username, email=email.lower() if email else None
    )
    if user is None:
        raise NotFound("User does not exist")
    if not verify_password(password, user.password_hash):
        logger.info(f"Failed login for user_id={user.id}")
        raise Unauthorized("Invalid user credentials")

    session = await _issue_session(db, user)
    logger.info(f"User logged in: user_id={user.id}")
    return session


async def logout_user(db: AsyncSession, user: User) -> None:
    """Forget the user's stored refresh token so it can't be used again."""
    user.refresh_token_enc = None
    async with store_guard(db, WriteFailed, "end session"):
        await db.commit()
    logger.info(f"User logged out: user_id={user.id}")


async def refresh_session(db: AsyncSession, refresh_token: str | None) -> SessionTokens:
    """
    Exchange a refresh token for a new token pair (rotating the refresh token).

    Only the most recently issued refresh token is accepted.

    Raises:
        Unauthorized: If the token is missing, invalid, expired or already used
    """
    if not refresh_token:
        raise Unauthorized("Refresh token is required")

    user_id = verify_token(refresh_token, REFRESH_TOKEN)
    if user_id is None:
        raise Unauthorized("Invalid refresh token")

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise Unauthorized("Invalid refresh token")

    stored = open_refresh_token(user.refresh_token_enc) if user.refresh_token_enc else None
    if stored != refresh_token:
        logger.warning(f"Rejected stale refresh token for user_id={user_id}")
        raise Unauthorized("Refresh token is expired or used")

    return await _issue_session(db, user)


async def change_password(
    db: AsyncSession, user: User, current_password: str, new_password: str
) -> None:
    """
    Replace the user's password after checking the current one.

    Raises:
        InvalidInput: If the current password is wrong or the new one is too short
    """
    if not current_password or not verify_password(current_password, user.password_hash):
        raise InvalidInput("Invalid old password")
    new_password = _require_password(new_password, "New password")

    user.password_hash = hash_password(new_password)
    async with store_guard(db, WriteFailed, "change password"):
        await db.commit()
    logger.info(f"Password changed: user_id={user.id}")


async def update_account_details(
    db: AsyncSession, user: User, full_name: str, email: str
) -> User:
    """
    Update full name and email.

    Raises:
        InvalidInput: If either field is blank/invalid
        Conflict: If the email belongs to another account
    """
    full_name = require_text(full_name, "Full name")
    email = _require_email(email)

    if email != user.email:
        async with store_guard(db, ReadFailed, "load user"):
            result = await db.execute(select(User.id).where(User.email == email))
            taken = result.scalar_one_or_none() is not None
        if taken:
            raise Conflict("Email is already in use")

    user.full_name = full_name
    user.email = email
    await _commit_user(db, user, "update account details")
    return user


async def _replace_image(
    db: AsyncSession,
    storage: MediaStorage,
    user: User,
    upload: MediaUpload | None,
    kind: str,
) -> User:
    """Upload a new avatar/cover, store it, then drop the replaced file."""
    if upload is None or not upload.data:
        raise InvalidInput(f"{kind.replace('_', ' ').capitalize()} file is required")

    url_field = f"{kind}_url"
    id_field = f"{kind}_public_id"
    new_ref = await storage.upload(upload, f"{kind}s")
    old_public_id = getattr(user, id_field)

    setattr(user, url_field, new_ref.url)
    setattr(user, id_field, new_ref.public_id)
    try:
        async with store_guard(db, WriteFailed, f"update {kind}"):
            await db.commit()
            await db.refresh(user)
    except WriteFailed:
        await discard_media(storage, new_ref.public_id)
        raise

    await discard_media(storage, old_public_id)
    return user


async def update_avatar(
    db: AsyncSession, storage: MediaStorage, user: User, avatar: MediaUpload | None
) -> User:
    """Replace the user's avatar."""
    return await _replace_image(db, storage, user, avatar, "avatar")


async def update_cover_image(
    db: AsyncSession, storage: MediaStorage, user: User, cover_image: MediaUpload | None
) -> User:
    """Replace (or set) the user's cover image."""
    return await _replace_image(db, storage, user, cover_image, "cover_image")


async def get_account(db: AsyncSession, user_id: str) -> User:
    """Load the account of ``user_id``."""
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFound("User not found")
    return user
