"""Video operations: publish, read, list, update, delete, publish toggle, views."""

import logging

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.db.crud import get_video_by_id, is_visible
from vidshare.db.models import (
    Comment,
    Like,
    PlaylistEntry,
    User,
    Video,
    WatchHistoryEntry,
)
from vidshare.db.session import store_guard
from vidshare.edges import EdgeKind, delete_edges_for_target
from vidshare.errors import InvalidInput, NotFound, UpstreamFailed, WriteFailed, require_text
from vidshare.media import MediaStorage, MediaUpload, discard_media
from vidshare.pagination import Page, PageParams
from vidshare.services.ownership import ResourceKind, require_owner
from vidshare.views import OWNER_FIELDS, ViewBuilder

logger = logging.getLogger(__name__)

VIDEO_FIELDS = (
    "id",
    "title",
    "description",
    "video_file_url",
    "thumbnail_url",
    "duration",
    "views",
    "is_published",
    "created_at",
)

# Compact video projection used when a video is joined into another view
VIDEO_SUMMARY_FIELDS = (
    "id",
    "title",
    "thumbnail_url",
    "duration",
    "views",
    "owner_id",
    "created_at",
)

SORTABLE_FIELDS = {"created_at", "views", "duration", "title", "like_count"}
SORT_TYPES = {"asc": False, "desc": True}


def video_view(actor_id: str | None) -> ViewBuilder:
    """Videos visible to ``actor_id`` with owner summary, counts and like flag."""
    return (
        ViewBuilder(Video)
        .visible_to(actor_id)
        .lookup(User, "owner_id", "id", "owner")
        .lookup(Like, "id", "video_id", "likes")
        .lookup(Comment, "id", "video_id", "comments")
        .first("owner", "owner", OWNER_FIELDS)
        .size("like_count", "likes")
        .size("comment_count", "comments")
        .contains("is_liked", "likes", "liked_by", actor_id)
        .project(*VIDEO_FIELDS)
    )


async def get_video(db: AsyncSession, video_id: str, actor_id: str | None = None) -> dict:
    """
    Get a single video view.

    Unpublished videos are only returned to their owner; everyone else gets
    NotFound, exactly as if the video did not exist.

    Raises:
        NotFound: If the video does not exist or is not visible to the actor
    """
    record = await video_view(actor_id).match(id=video_id).fetch_one(db)
    if record is None:
        raise NotFound("Video not found")
    return record


async def list_videos(
    db: AsyncSession,
    params: PageParams,
    actor_id: str | None = None,
    query: str | None = None,
    owner_id: str | None = None,
    sort_by: str = "created_at",
    sort_type: str = "desc",
) -> Page:
    """
    List visible videos, optionally filtered by owner and a title/description
    substring.

    Args:
        db: Database session
        params: Pagination window
        actor_id: Viewer; their own unpublished videos are included
        query: Case-insensitive substring to match in title or description
        owner_id: Restrict to one channel
        sort_by: One of SORTABLE_FIELDS
        sort_type: "asc" or "desc"

    Returns:
        Page of video views
    """
    if sort_by not in SORTABLE_FIELDS:
        raise InvalidInput(f"Can not sort videos by {sort_by!r}")
    if sort_type not in SORT_TYPES:
        raise InvalidInput("sort_type must be 'asc' or 'desc'")

    view = video_view(actor_id)
    if owner_id:
        view.match(owner_id=owner_id)
    if query and query.strip():
        term = query.strip()
        view.match(
            or_(
                Video.title.icontains(term, autoescape=True),
                Video.description.icontains(term, autoescape=True),
            )
        )
    view.sort(sort_by, descending=SORT_TYPES[sort_type])
    return await view.paginate(db, params)


async def publish_video(
    db: AsyncSession,
    storage: MediaStorage,
    owner_id: str,
    title: str,
    description: str,
    video_file: MediaUpload | None,
    thumbnail: MediaUpload | None,
    is_published: bool = True,
    duration: float | None = None,
) -> Video:
    """
    Upload the media files and create the video record.

    If the thumbnail upload or the insert fails, already-uploaded files are
    removed best-effort and the original error is raised.

    Raises:
        InvalidInput: If title/description are blank or a file is missing
        UpstreamFailed: If a media upload fails
        WriteFailed: If the record can't be stored
    """
    title = require_text(title, "Title")
    description = require_text(description, "Description")
    if video_file is None or not video_file.data:
        raise InvalidInput("Video file is required")
    if thumbnail is None or not thumbnail.data:
        raise InvalidInput("Thumbnail is required")

    video_ref = await storage.upload(video_file, "videos")
    try:
        thumb_ref = await storage.upload(thumbnail, "thumbnails")
    except UpstreamFailed:
        await discard_media(storage, video_ref.public_id)
        raise

    video = Video(
        owner_id=owner_id,
        title=title,
        description=description,
        video_file_url=video_ref.url,
        video_file_public_id=video_ref.public_id,
        thumbnail_url=thumb_ref.url,
        thumbnail_public_id=thumb_ref.public_id,
        duration=video_ref.duration or duration or 0.0,
        is_published=is_published,
    )
    try:
        async with store_guard(db, WriteFailed, "create video"):
            db.add(video)
            await db.commit()
            await db.refresh(video)
    except WriteFailed:
        await discard_media(storage, video_ref.public_id, thumb_ref.public_id)
        raise

    logger.info(f"Video published: video_id={video.id} owner={owner_id}")
    return video


async def update_video(
    db: AsyncSession,
    storage: MediaStorage,
    video_id: str,
    actor_id: str,
    title: str | None = None,
    description: str | None = None,
    thumbnail: MediaUpload | None = None,
) -> Video:
    """Update title/description and optionally replace the thumbnail (owner only)."""
    if title is None and description is None and thumbnail is None:
        raise InvalidInput("Nothing to update")
    if title is not None:
        title = require_text(title, "Title")
    if description is not None:
        description = require_text(description, "Description")

    video = await require_owner(db, ResourceKind.VIDEO, video_id, actor_id)

    old_thumbnail = None
    new_ref = None
    if thumbnail is not None and thumbnail.data:
        new_ref = await storage.upload(thumbnail, "thumbnails")
        old_thumbnail = video.thumbnail_public_id
        video.thumbnail_url = new_ref.url
        video.thumbnail_public_id = new_ref.public_id
    if title is not None:
        video.title = title
    if description is not None:
        video.description = description

    try:
        async with store_guard(db, WriteFailed, "update video"):
            await db.commit()
            await db.refresh(video)
    except WriteFailed:
        if new_ref is not None:
            await discard_media(storage, new_ref.public_id)
        raise

    await discard_media(storage, old_thumbnail)
    return video


async def toggle_publish_status(db: AsyncSession, video_id: str, actor_id: str) -> Video:
    """Flip is_published on the actor's own video."""
    video = await require_owner(db, ResourceKind.VIDEO, video_id, actor_id)
    video.is_published = not video.is_published
    async with store_guard(db, WriteFailed, "update video status"):
        await db.commit()
        await db.refresh(video)
    return video


async def delete_video(
    db: AsyncSession, storage: MediaStorage, video_id: str, actor_id: str
) -> None:
    """
    Delete the actor's video together with everything that points at it:
    its likes, its comments (and their likes), playlist entries and watch
    history entries. Media files are removed best-effort afterwards.
    """
    video = await require_owner(db, ResourceKind.VIDEO, video_id, actor_id)
    media_ids = (video.video_file_public_id, video.thumbnail_public_id)

    comment_ids = select(Comment.id).where(Comment.video_id == video_id)
    async with store_guard(db, WriteFailed, "delete video"):
        await delete_edges_for_target(db, EdgeKind.LIKE_COMMENT, comment_ids)
        await delete_edges_for_target(db, EdgeKind.LIKE_VIDEO, video_id)
        await db.execute(delete(Comment).where(Comment.video_id == video_id))
        await db.execute(delete(PlaylistEntry).where(PlaylistEntry.video_id == video_id))
        await db.execute(
            delete(WatchHistoryEntry).where(WatchHistoryEntry.video_id == video_id)
        )
        await db.delete(video)
        await db.commit()

    logger.info(f"Video deleted: video_id={video_id} owner={actor_id}")
    await discard_media(storage, *media_ids)


async def record_view(db: AsyncSession, video_id: str, actor_id: str) -> None:
    """Count a view and append the video to the actor's watch history."""
    video = await get_video_by_id(db, video_id)
    if video is None or not is_visible(video, actor_id):
        raise NotFound("Video not found")

    async with store_guard(db, WriteFailed, "record video view"):
        await db.execute(
            update(Video).where(Video.id == video_id).values(views=Video.views + 1)
        )
        db.add(WatchHistoryEntry(user_id=actor_id, video_id=video_id))
        await db.commit()
