"""Tweet (short post) operations."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.db.crud import get_user_by_id
from vidshare.db.models import Like, Tweet, User
from vidshare.db.session import store_guard
from vidshare.edges import EdgeKind, delete_edges_for_target
from vidshare.errors import NotFound, WriteFailed, require_text
from vidshare.media import MediaStorage, MediaUpload, discard_media
from vidshare.pagination import Page, PageParams
from vidshare.services.ownership import ResourceKind, require_owner
from vidshare.views import OWNER_FIELDS, ViewBuilder

logger = logging.getLogger(__name__)

TWEET_FIELDS = ("id", "content", "image_url", "created_at", "updated_at")


async def create_tweet(
    db: AsyncSession,
    storage: MediaStorage,
    owner_id: str,
    content: str,
    image: MediaUpload | None = None,
) -> Tweet:
    """
    Create a tweet, optionally with an image.

    If the insert fails the uploaded image is removed best-effort.

    Raises:
        InvalidInput: If content is blank
        UpstreamFailed: If the image upload fails
        WriteFailed: If the record can't be stored
    """
    content = require_text(content, "Content")

    image_ref = None
    if image is not None and image.data:
        image_ref = await storage.upload(image, "tweets")

    tweet = Tweet(
        owner_id=owner_id,
        content=content,
        image_url=image_ref.url if image_ref else None,
        image_public_id=image_ref.public_id if image_ref else None,
    )
    try:
        async with store_guard(db, WriteFailed, "create tweet"):
            db.add(tweet)
            await db.commit()
            await db.refresh(tweet)
    except WriteFailed:
        if image_ref is not None:
            await discard_media(storage, image_ref.public_id)
        raise

    logger.info(f"Tweet created: tweet_id={tweet.id} owner={owner_id}")
    return tweet


async def list_user_tweets(
    db: AsyncSession, user_id: str, params: PageParams, actor_id: str | None = None
) -> Page:
    """A user's tweets, newest first, with owner summary, like count and like flag."""
    if await get_user_by_id(db, user_id) is None:
        raise NotFound("User not found")

    view = (
        ViewBuilder(Tweet)
        .match(owner_id=user_id)
        .lookup(User, "owner_id", "id", "owner")
        .lookup(Like, "id", "tweet_id", "likes")
        .first("owner", "owner", OWNER_FIELDS)
        .size("like_count", "likes")
        .contains("is_liked", "likes", "liked_by", actor_id)
        .project(*TWEET_FIELDS)
        .sort("created_at", descending=True)
    )
    return await view.paginate(db, params)


async def update_tweet(
    db: AsyncSession, tweet_id: str, actor_id: str, content: str
) -> Tweet:
    """Replace the content of the actor's own tweet."""
    content = require_text(content, "Content")
    tweet = await require_owner(db, ResourceKind.TWEET, tweet_id, actor_id)

    tweet.content = content
    async with store_guard(db, WriteFailed, "update tweet"):
        await db.commit()
        await db.refresh(tweet)
    return tweet


async def delete_tweet(
    db: AsyncSession, storage: MediaStorage, tweet_id: str, actor_id: str
) -> None:
    """Delete the actor's own tweet, its likes and (best-effort) its image."""
    tweet = await require_owner(db, ResourceKind.TWEET, tweet_id, actor_id)
    image_id = tweet.image_public_id

    async with store_guard(db, WriteFailed, "delete tweet"):
        await delete_edges_for_target(db, EdgeKind.LIKE_TWEET, tweet_id)
        await db.delete(tweet)
        await db.commit()

    logger.info(f"Tweet deleted: tweet_id={tweet_id}")
    await discard_media(storage, image_id)
