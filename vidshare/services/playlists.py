"""Playlist operations."""

import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.db.crud import get_user_by_id, get_video_by_id, is_visible
from vidshare.db.models import Playlist, PlaylistEntry, User, Video
from vidshare.db.session import store_guard
from vidshare.errors import InvalidInput, NotFound, WriteFailed, require_text
from vidshare.pagination import Page, PageParams
from vidshare.services.ownership import ResourceKind, require_owner
from vidshare.services.videos import VIDEO_SUMMARY_FIELDS
from vidshare.views import OWNER_FIELDS, ViewBuilder

logger = logging.getLogger(__name__)

PLAYLIST_FIELDS = ("id", "name", "description", "created_at", "updated_at")


def _clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    return description.strip() or None


def playlist_view() -> ViewBuilder:
    """Playlists with owner summary and number of entries."""
    return (
        ViewBuilder(Playlist)
        .lookup(User, "owner_id", "id", "owner")
        .lookup(PlaylistEntry, "id", "playlist_id", "entries")
        .first("owner", "owner", OWNER_FIELDS)
        .size("video_count", "entries")
        .project(*PLAYLIST_FIELDS)
    )


async def create_playlist(
    db: AsyncSession, owner_id: str, name: str, description: str | None = None
) -> Playlist:
    """Create an empty playlist owned by ``owner_id``."""
    playlist = Playlist(
        owner_id=owner_id,
        name=require_text(name, "Name"),
        description=_clean_description(description),
    )
    async with store_guard(db, WriteFailed, "create playlist"):
        db.add(playlist)
        await db.commit()
        await db.refresh(playlist)

    logger.info(f"Playlist created: playlist_id={playlist.id} owner={owner_id}")
    return playlist


async def get_playlist(db: AsyncSession, playlist_id: str) -> dict:
    """
    Get a playlist header with its owner summary and ``video_count``.

    The videos themselves are listed by list_playlist_videos().
    """
    record = await playlist_view().match(id=playlist_id).fetch_one(db)
    if record is None:
        raise NotFound("Playlist not found")
    return record


async def list_user_playlists(db: AsyncSession, user_id: str, params: PageParams) -> Page:
    """A user's playlists, most recently created first."""
    if await get_user_by_id(db, user_id) is None:
        raise NotFound("User not found")

    view = playlist_view().match(owner_id=user_id).sort("created_at", descending=True)
    return await view.paginate(db, params)


async def list_playlist_videos(
    db: AsyncSession, playlist_id: str, params: PageParams, actor_id: str | None = None
) -> Page:
    """
    Entries of a playlist in the order they were added.

    Each record holds the entry ``id``/``added_at``, the ``video`` summary and
    its ``owner``. Unpublished videos are hidden unless the actor owns them.
    """
    if await playlist_view().match(id=playlist_id).fetch_one(db) is None:
        raise NotFound("Playlist not found")

    view = (
        ViewBuilder(PlaylistEntry)
        .match(playlist_id=playlist_id)
        .lookup(Video, "video_id", "id", "video")
        .lookup(User, "video.owner_id", "id", "owner")
        .first("video", "video", VIDEO_SUMMARY_FIELDS)
        .first("owner", "owner", OWNER_FIELDS)
        .visible_to(actor_id, lookup="video")
        .project("id", "added_at")
        .sort("added_at", descending=False)
    )
    return await view.paginate(db, params)


async def add_video_to_playlist(
    db: AsyncSession, playlist_id: str, video_id: str, actor_id: str
) -> PlaylistEntry:
    """
    Append a video to the actor's playlist.

    The same video may be added more than once.

    Raises:
        NotFound: If the playlist or the (visible) video doesn't exist
        Unauthorized: If the actor doesn't own the playlist
    """
    await require_owner(db, ResourceKind.PLAYLIST, playlist_id, actor_id)

    video = await get_video_by_id(db, video_id)
    if video is None or not is_visible(video, actor_id):
        raise NotFound("Video not found")

    entry = PlaylistEntry(playlist_id=playlist_id, video_id=video_id)
    async with store_guard(db, WriteFailed, "add video to playlist"):
        db.add(entry)
        await db.commit()
        await db.refresh(entry)
    return entry


async def remove_video_from_playlist(
    db: AsyncSession, playlist_id: str, video_id: str, actor_id: str
) -> int:
    """
    Remove every occurrence of a video from the actor's playlist.

    Returns:
        Number of entries removed

    Raises:
        NotFound: If the playlist doesn't exist or doesn't contain the video
    """
    await require_owner(db, ResourceKind.PLAYLIST, playlist_id, actor_id)

    async with store_guard(db, WriteFailed, "remove video from playlist"):
        result = await db.execute(
            delete(PlaylistEntry).where(
                PlaylistEntry.playlist_id == playlist_id,
                PlaylistEntry.video_id == video_id,
            )
        )
        await db.commit()

    if result.rowcount == 0:
        raise NotFound("Video not found in playlist")
    return result.rowcount


async def update_playlist(
    db: AsyncSession,
    playlist_id: str,
    actor_id: str,
    name: str | None = None,
    description: str | None = None,
) -> Playlist:
    """Rename the actor's playlist and/or replace its description."""
    if name is None and description is None:
        raise InvalidInput("Nothing to update")

    playlist = await require_owner(db, ResourceKind.PLAYLIST, playlist_id, actor_id)
    if name is not None:
        playlist.name = require_text(name, "Name")
    if description is not None:
        playlist.description = _clean_description(description)

    async with store_guard(db, WriteFailed, "update playlist"):
        await db.commit()
        await db.refresh(playlist)
    return playlist


async def delete_playlist(db: AsyncSession, playlist_id: str, actor_id: str) -> None:
    """Delete the actor's playlist and its entries."""
    playlist = await require_owner(db, ResourceKind.PLAYLIST, playlist_id, actor_id)

    async with store_guard(db, WriteFailed, "delete playlist"):
        await db.execute(
            delete(PlaylistEntry).where(PlaylistEntry.playlist_id == playlist_id)
        )
        await db.delete(playlist)
        await db.commit()

    logger.info(f"Playlist deleted: playlist_id={playlist_id}")
