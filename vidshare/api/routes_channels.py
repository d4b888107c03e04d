"""Channel profile, dashboard and channel video endpoints."""

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.api.dependencies import pagination_params
from vidshare.auth.dependencies import optional_user, require_user
from vidshare.db.models import User
from vidshare.db.session import get_session
from vidshare.pagination import Page, PageParams
from vidshare.services import channels

router = APIRouter(prefix="/api/channels", tags=["channels"])
limiter = Limiter(key_func=get_remote_address)


@router.get("/c/{username}")
@limiter.limit("120/minute")
async def get_channel_profile(
    request: Request,
    username: str,
    user: User | None = Depends(optional_user),
    db: AsyncSession = Depends(get_session),
):
    """
    Public channel profile with subscriber/following counts.

    Rate limit: 120 requests per minute per IP.
    """
    return await channels.get_channel_profile(
        db, username, actor_id=user.id if user else None
    )


@router.get("/{channel_id}/stats")
@limiter.limit("60/minute")
async def get_channel_stats(
    request: Request,
    channel_id: str,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Totals for the caller's own channel."""
    return await channels.get_channel_stats(db, channel_id, user.id)


@router.get("/{channel_id}/videos", response_model=Page)
@limiter.limit("120/minute")
async def list_channel_videos(
    request: Request,
    channel_id: str,
    params: PageParams = Depends(pagination_params),
    user: User | None = Depends(optional_user),
    db: AsyncSession = Depends(get_session),
):
    """A channel's videos, newest first."""
    return await channels.list_channel_videos(
        db, channel_id, params, actor_id=user.id if user else None
    )
