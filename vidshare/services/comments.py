"""Comment operations."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.db.crud import get_video_by_id, is_visible
from vidshare.db.models import Comment, Like, User
from vidshare.db.session import store_guard
from vidshare.edges import EdgeKind, delete_edges_for_target
from vidshare.errors import InvalidInput, NotFound, WriteFailed, require_text
from vidshare.pagination import Page, PageParams
from vidshare.services.ownership import ResourceKind, require_owner
from vidshare.views import OWNER_FIELDS, ViewBuilder

logger = logging.getLogger(__name__)

COMMENT_FIELDS = ("id", "video_id", "content", "created_at", "updated_at")

# sort name -> newest first?
COMMENT_SORTS = {"newest": True, "oldest": False}


async def list_comments(
    db: AsyncSession,
    video_id: str,
    params: PageParams,
    actor_id: str | None = None,
    sort: str | None = None,
) -> Page:
    """
    List comments on a video with owner summary, like count and like flag.

    A video with no comments yields an empty page, not an error.

    Args:
        db: Database session
        video_id: Video whose comments to list
        params: Pagination window
        actor_id: Viewer, used for ``is_liked`` and video visibility
        sort: "newest" (default) or "oldest"

    Raises:
        NotFound: If the video does not exist or is not visible to the actor
        InvalidInput: If ``sort`` is not recognised
    """
    sort = sort or "newest"
    if sort not in COMMENT_SORTS:
        raise InvalidInput("sort must be 'newest' or 'oldest'")

    video = await get_video_by_id(db, video_id)
    if video is None or not is_visible(video, actor_id):
        raise NotFound("Video not found")

    view = (
        ViewBuilder(Comment)
        .match(video_id=video_id)
        .lookup(User, "owner_id", "id", "owner")
        .lookup(Like, "id", "comment_id", "likes")
        .first("owner", "owner", OWNER_FIELDS)
        .size("like_count", "likes")
        .contains("is_liked", "likes", "liked_by", actor_id)
        .project(*COMMENT_FIELDS)
        .sort("created_at", descending=COMMENT_SORTS[sort])
    )
    return await view.paginate(db, params)


async def add_comment(
    db: AsyncSession, video_id: str, actor_id: str, content: str
) -> Comment:
    """
    Add a comment to a published video.

    Raises:
        InvalidInput: If content is blank
        NotFound: If the video does not exist or is not published
    """
    content = require_text(content, "Comment")

    video = await get_video_by_id(db, video_id)
    if video is None or not video.is_published:
        raise NotFound("Video not found")

    comment = Comment(video_id=video_id, owner_id=actor_id, content=content)
    async with store_guard(db, WriteFailed, "add comment"):
        db.add(comment)
        await db.commit()
        await db.refresh(comment)

    logger.info(f"Comment added: comment_id={comment.id} video_id={video_id}")
    return comment


async def update_comment(
    db: AsyncSession, comment_id: str, actor_id: str, content: str
) -> Comment:
    """Replace the content of the actor's own comment."""
    content = require_text(content, "Comment")
    comment = await require_owner(db, ResourceKind.COMMENT, comment_id, actor_id)

    comment.content = content
    async with store_guard(db, WriteFailed, "update comment"):
        await db.commit()
        await db.refresh(comment)
    return comment


async def delete_comment(db: AsyncSession, comment_id: str, actor_id: str) -> None:
    """Delete the actor's own comment and the likes on it."""
    comment = await require_owner(db, ResourceKind.COMMENT, comment_id, actor_id)

    async with store_guard(db, WriteFailed, "delete comment"):
        await delete_edges_for_target(db, EdgeKind.LIKE_COMMENT, comment_id)
        await db.delete(comment)
        await db.commit()

    logger.info(f"Comment deleted: comment_id={comment_id}")
