"""Subscription toggles and subscriber/subscription listings."""

from dataclasses import replace

from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.db.crud import get_user_by_id
from vidshare.db.models import Subscription, User
from vidshare.edges import EdgeKind, ToggleResult, count_edges, toggle_edge
from vidshare.errors import InvalidInput, NotFound
from vidshare.pagination import Page, PageParams
from vidshare.views import OWNER_FIELDS, ViewBuilder


async def _require_channel(db: AsyncSession, channel_id: str) -> User:
    channel = await get_user_by_id(db, channel_id)
    if channel is None:
        raise NotFound("Channel not found")
    return channel


async def toggle_subscription(
    db: AsyncSession, channel_id: str, actor_id: str
) -> ToggleResult:
    """
    Subscribe the actor to a channel, or unsubscribe if already subscribed.

    Raises:
        InvalidInput: If the actor targets their own channel
        NotFound: If the channel doesn't exist
        WriteFailed: If the toggle couldn't be stored
    """
    if channel_id == actor_id:
        raise InvalidInput("You can not subscribe to your own channel")
    await _require_channel(db, channel_id)
    result = await toggle_edge(db, EdgeKind.SUBSCRIPTION, actor_id, channel_id)
    return replace(
        result, total=await count_edges(db, EdgeKind.SUBSCRIPTION, target_id=channel_id)
    )


async def list_subscribers(
    db: AsyncSession, channel_id: str, params: PageParams, actor_id: str | None = None
) -> Page:
    """
    Users subscribed to ``channel_id``, newest subscription first.

    Each record holds the ``subscriber`` summary, that subscriber's own
    ``subscriber_count`` and whether the actor is subscribed to them.
    """
    await _require_channel(db, channel_id)

    view = (
        ViewBuilder(Subscription)
        .match(channel_id=channel_id)
        .lookup(User, "subscriber_id", "id", "subscriber")
        .lookup(Subscription, "subscriber_id", "channel_id", "subscriber_subs")
        .first("subscriber", "subscriber", OWNER_FIELDS)
        .size("subscriber_count", "subscriber_subs")
        .contains("is_subscribed", "subscriber_subs", "subscriber_id", actor_id)
        .project("id", "created_at")
        .sort("created_at", descending=True)
    )
    return await view.paginate(db, params)


async def list_subscriptions(
    db: AsyncSession, subscriber_id: str, params: PageParams, actor_id: str | None = None
) -> Page:
    """
    Channels ``subscriber_id`` is subscribed to, newest subscription first.

    Each record holds the ``channel`` summary, its ``subscriber_count`` and
    whether the actor is subscribed to it.
    """
    await _require_channel(db, subscriber_id)

    view = (
        ViewBuilder(Subscription)
        .match(subscriber_id=subscriber_id)
        .lookup(User, "channel_id", "id", "channel")
        .lookup(Subscription, "channel_id", "channel_id", "channel_subs")
        .first("channel", "channel", OWNER_FIELDS)
        .size("subscriber_count", "channel_subs")
        .contains("is_subscribed", "channel_subs", "subscriber_id", actor_id)
        .project("id", "created_at")
        .sort("created_at", descending=True)
    )
    return await view.paginate(db, params)
