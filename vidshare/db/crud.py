"""CRUD utilities for user records."""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.db.models import User, Video
from vidshare.db.session import store_guard
from vidshare.errors import ReadFailed


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    """Get a user by their ID."""
    async with store_guard(db, ReadFailed, "load user"):
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    """Get a user by username (usernames are stored lower-case)."""
    async with store_guard(db, ReadFailed, "load user"):
        result = await db.execute(
            select(User).where(User.username == username.strip().lower())
        )
        return result.scalar_one_or_none()


async def find_user_by_login(
    db: AsyncSession, username: str | None = None, email: str | None = None
) -> User | None:
    """Find a user matching either the username or the email.

    Args:
        db: Database session
        username: Username to match (case-insensitive)
        email: Email to match

    Returns:
        The first matching user, or None
    """
    clauses = []
    if username:
        clauses.append(User.username == username.strip().lower())
    if email:
        clauses.append(User.email == email.strip())
    if not clauses:
        return None

    async with store_guard(db, ReadFailed, "load user"):
        result = await db.execute(select(User).where(or_(*clauses)).limit(1))
        return result.scalar_one_or_none()


async def get_video_by_id(db: AsyncSession, video_id: str) -> Video | None:
    """Get a video by ID regardless of its published state."""
    async with store_guard(db, ReadFailed, "load video"):
        result = await db.execute(select(Video).where(Video.id == video_id))
        return result.scalar_one_or_none()


def is_visible(video: Video, actor_id: str | None) -> bool:
    """Whether ``actor_id`` may see ``video`` (published, or their own)."""
    return video.is_published or (actor_id is not None and video.owner_id == actor_id)
