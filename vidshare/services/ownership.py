"""Ownership guard for mutating operations.

Policy, applied to every resource kind and every mutation:

- the resource does not exist        -> NotFound
- it exists but ``actor_id`` differs -> Unauthorized
"""

from enum import Enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.db.models import Comment, Playlist, Tweet, Video
from vidshare.db.session import store_guard
from vidshare.errors import NotFound, ReadFailed, Unauthorized


class ResourceKind(str, Enum):
    VIDEO = "video"
    COMMENT = "comment"
    TWEET = "tweet"
    PLAYLIST = "playlist"


_MODELS = {
    ResourceKind.VIDEO: Video,
    ResourceKind.COMMENT: Comment,
    ResourceKind.TWEET: Tweet,
    ResourceKind.PLAYLIST: Playlist,
}


async def _load(db: AsyncSession, kind: ResourceKind, resource_id: str):
    model = _MODELS[kind]
    async with store_guard(db, ReadFailed, f"load {kind.value}"):
        result = await db.execute(select(model).where(model.id == resource_id))
        return result.scalar_one_or_none()


async def authorize(
    db: AsyncSession, kind: ResourceKind | str, resource_id: str, actor_id: str
) -> bool:
    """Whether ``actor_id`` may mutate the resource; False if it doesn't exist."""
    resource = await _load(db, ResourceKind(kind), resource_id)
    if resource is None:
        return False
    return str(resource.owner_id) == str(actor_id)


async def require_owner(
    db: AsyncSession, kind: ResourceKind | str, resource_id: str, actor_id: str
):
    """Load the resource for mutation by ``actor_id``.

    Returns:
        The ORM object

    Raises:
        NotFound: If the resource does not exist
        Unauthorized: If ``actor_id`` is not its owner
    """
    kind = ResourceKind(kind)
    resource = await _load(db, kind, resource_id)
    if resource is None:
        raise NotFound(f"{kind.value.capitalize()} not found")
    if str(resource.owner_id) != str(actor_id):
        raise Unauthorized(f"Not authorized to modify this {kind.value}")
    return resource
