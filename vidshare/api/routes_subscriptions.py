"""Subscription endpoints."""

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.api.dependencies import pagination_params
from vidshare.auth.dependencies import optional_user, require_user
from vidshare.db.models import User
from vidshare.db.session import get_session
from vidshare.pagination import Page, PageParams
from vidshare.schemas import ToggleResponse
from vidshare.services import subscriptions

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])
limiter = Limiter(key_func=get_remote_address)


@router.post("/channel/{channel_id}", response_model=ToggleResponse)
@limiter.limit("60/minute")
async def toggle_subscription(
    request: Request,
    channel_id: str,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """
    Subscribe to or unsubscribe from a channel.

    Rate limit: 60 requests per minute per IP.
    """
    result = await subscriptions.toggle_subscription(db, channel_id, user.id)
    return ToggleResponse(state=result.state, total=result.total)


@router.get("/channel/{channel_id}/subscribers", response_model=Page)
@limiter.limit("120/minute")
async def list_subscribers(
    request: Request,
    channel_id: str,
    params: PageParams = Depends(pagination_params),
    user: User | None = Depends(optional_user),
    db: AsyncSession = Depends(get_session),
):
    """Users subscribed to a channel."""
    return await subscriptions.list_subscribers(
        db, channel_id, params, actor_id=user.id if user else None
    )


@router.get("/user/{subscriber_id}/channels", response_model=Page)
@limiter.limit("120/minute")
async def list_subscriptions(
    request: Request,
    subscriber_id: str,
    params: PageParams = Depends(pagination_params),
    user: User | None = Depends(optional_user),
    db: AsyncSession = Depends(get_session),
):
    """Channels a user is subscribed to."""
    return await subscriptions.list_subscriptions(
        db, subscriber_id, params, actor_id=user.id if user else None
    )
