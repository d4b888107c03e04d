"""Channel (user profile) views, channel dashboard stats and watch history."""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from vidshare.db.crud import get_user_by_id
from vidshare.db.models import Like, Subscription, User, Video, WatchHistoryEntry
from vidshare.db.session import store_guard
from vidshare.errors import NotFound, Unauthorized, WriteFailed, require_text
from vidshare.pagination import Page, PageParams
from vidshare.services.videos import VIDEO_SUMMARY_FIELDS, list_videos
from vidshare.views import OWNER_FIELDS, ViewBuilder

logger = logging.getLogger(__name__)

# Public profile; email and credentials never appear here
CHANNEL_FIELDS = ("id", "username", "full_name", "avatar_url", "cover_image_url", "created_at")


def _channel_view(actor_id: str | None) -> ViewBuilder:
    return (
        ViewBuilder(User)
        .lookup(Subscription, "id", "channel_id", "subscribers")
        .lookup(Subscription, "id", "subscriber_id", "following")
        .size("subscriber_count", "subscribers")
        .size("following_count", "following")
        .contains("is_subscribed", "subscribers", "subscriber_id", actor_id)
        .project(*CHANNEL_FIELDS)
    )


async def get_channel_profile(
    db: AsyncSession, username: str, actor_id: str | None = None
) -> dict:
    """
    Public channel profile for ``username``.

    Includes ``subscriber_count``, ``following_count`` (channels this user
    subscribes to) and whether the actor is subscribed.

    Raises:
        InvalidInput: If username is blank
        NotFound: If no such user exists
    """
    username = require_text(username, "Username").lower()
    record = await _channel_view(actor_id).match(username=username).fetch_one(db)
    if record is None:
        raise NotFound("Channel not found")
    return record


async def get_channel_stats(db: AsyncSession, channel_id: str, actor_id: str) -> dict:
    """
    Dashboard totals for the actor's own channel.

    Returns:
        Dict with video_count, total_views, like_count (likes across all the
        channel's videos), subscriber_count and following_count

    Raises:
        NotFound: If the channel doesn't exist
        Unauthorized: If the actor isn't the channel
    """
    if await get_user_by_id(db, channel_id) is None:
        raise NotFound("Channel not found")
    if channel_id != actor_id:
        raise Unauthorized("Channel stats are only available to the channel owner")

    liked_video = aliased(Video)
    like_count = (
        select(func.count())
        .select_from(Like)
        .join(liked_video, Like.video_id == liked_video.id)
        .where(liked_video.owner_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )

    view = (
        ViewBuilder(User)
        .match(id=channel_id)
        .lookup(Video, "id", "owner_id", "videos")
        .lookup(Subscription, "id", "channel_id", "subscribers")
        .lookup(Subscription, "id", "subscriber_id", "following")
        .size("video_count", "videos")
        .total("total_views", "videos", "views")
        .expression("like_count", like_count)
        .size("subscriber_count", "subscribers")
        .size("following_count", "following")
        .project("id")
    )
    record = await view.fetch_one(db)
    if record is None:
        raise NotFound("Channel not found")
    record["total_views"] = int(record["total_views"] or 0)
    record["like_count"] = int(record["like_count"] or 0)
    return record


async def list_channel_videos(
    db: AsyncSession, channel_id: str, params: PageParams, actor_id: str | None = None
) -> Page:
    """A channel's videos, newest first (unpublished ones only for the owner)."""
    if await get_user_by_id(db, channel_id) is None:
        raise NotFound("Channel not found")
    return await list_videos(db, params, actor_id=actor_id, owner_id=channel_id)


async def get_watch_history(db: AsyncSession, actor_id: str, params: PageParams) -> Page:
    """
    The actor's watch history, most recent first.

    Repeated views appear as separate entries. Videos that have since been
    unpublished by someone else are left out.
    """
    view = (
        ViewBuilder(WatchHistoryEntry)
        .match(user_id=actor_id)
        .lookup(Video, "video_id", "id", "video")
        .lookup(User, "video.owner_id", "id", "owner")
        .first("video", "video", VIDEO_SUMMARY_FIELDS)
        .first("owner", "owner", OWNER_FIELDS)
        .visible_to(actor_id, lookup="video")
        .project("id", "watched_at")
        .sort("watched_at", descending=True)
    )
    return await view.paginate(db, params)


async def clear_watch_history(db: AsyncSession, actor_id: str) -> int:
    """Remove every watch history entry of the actor; returns how many."""
    async with store_guard(db, WriteFailed, "clear watch history"):
        result = await db.execute(
            delete(WatchHistoryEntry).where(WatchHistoryEntry.user_id == actor_id)
        )
        await db.commit()

    logger.info(f"Watch history cleared: user_id={actor_id} entries={result.rowcount}")
    return result.rowcount
