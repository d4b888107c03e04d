"""Like toggles and the liked-videos view."""

from dataclasses import replace

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.db.crud import get_video_by_id, is_visible
from vidshare.db.models import Comment, Like, Tweet, User, Video
from vidshare.db.session import store_guard
from vidshare.edges import EdgeKind, ToggleResult, count_edges, toggle_edge
from vidshare.errors import InvalidInput, NotFound, ReadFailed
from vidshare.pagination import Page, PageParams
from vidshare.services.videos import VIDEO_SUMMARY_FIELDS
from vidshare.views import OWNER_FIELDS, ViewBuilder

LIKE_KINDS = {
    "video": EdgeKind.LIKE_VIDEO,
    "comment": EdgeKind.LIKE_COMMENT,
    "tweet": EdgeKind.LIKE_TWEET,
}


def like_kind(kind: str) -> EdgeKind:
    """Map "video"/"comment"/"tweet" (or "like:<target>") to an EdgeKind."""
    target = kind.removeprefix("like:")
    try:
        return LIKE_KINDS[target]
    except KeyError:
        raise InvalidInput(f"Unknown like target: {kind!r}") from None


async def _exists(db: AsyncSession, model: type, target_id: str) -> bool:
    async with store_guard(db, ReadFailed, f"load {model.__tablename__}"):
        result = await db.execute(select(model.id).where(model.id == target_id))
        return result.scalar_one_or_none() is not None


async def _comment_visible(db: AsyncSession, comment_id: str, actor_id: str) -> bool:
    """Whether the comment exists and its video is visible to the actor."""
    async with store_guard(db, ReadFailed, "load comments"):
        result = await db.execute(
            select(Video)
            .join(Comment, Comment.video_id == Video.id)
            .where(Comment.id == comment_id)
        )
        video = result.scalar_one_or_none()
    return video is not None and is_visible(video, actor_id)


async def toggle_like(
    db: AsyncSession, kind: str, target_id: str, actor_id: str
) -> ToggleResult:
    """
    Like the target if the actor hasn't yet, otherwise remove the like.

    Args:
        db: Database session
        kind: "video", "comment" or "tweet"
        target_id: ID of the liked entity
        actor_id: The liking user

    Raises:
        InvalidInput: If ``kind`` is unknown
        NotFound: If the target doesn't exist, or is (or belongs to) an
            unpublished video the actor doesn't own
        WriteFailed: If the toggle couldn't be stored
    """
    edge_kind = like_kind(kind)

    if edge_kind is EdgeKind.LIKE_VIDEO:
        video = await get_video_by_id(db, target_id)
        found = video is not None and is_visible(video, actor_id)
    elif edge_kind is EdgeKind.LIKE_COMMENT:
        found = await _comment_visible(db, target_id, actor_id)
    else:
        found = await _exists(db, Tweet, target_id)

    if not found:
        raise NotFound(f"{edge_kind.value.removeprefix('like:').capitalize()} not found")

    result = await toggle_edge(db, edge_kind, actor_id, target_id)
    return replace(result, total=await count_edges(db, edge_kind, target_id=target_id))


async def list_liked_videos(db: AsyncSession, actor_id: str, params: PageParams) -> Page:
    """
    Videos the actor has liked, most recently liked first.

    Each record carries the like ``id``/``created_at``, the ``video`` summary
    and the video's ``owner``. Videos that were deleted or unpublished by
    someone else drop out.
    """
    view = (
        ViewBuilder(Like)
        .match(Like.video_id.is_not(None), liked_by=actor_id)
        .lookup(Video, "video_id", "id", "video")
        .lookup(User, "video.owner_id", "id", "owner")
        .first("video", "video", VIDEO_SUMMARY_FIELDS)
        .first("owner", "owner", OWNER_FIELDS)
        .visible_to(actor_id, lookup="video")
        .project("id", "created_at")
        .sort("created_at", descending=True)
    )
    return await view.paginate(db, params)
