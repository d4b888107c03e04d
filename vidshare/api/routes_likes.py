"""Like toggle endpoints."""

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.api.dependencies import pagination_params
from vidshare.auth.dependencies import require_user
from vidshare.db.models import User
from vidshare.db.session import get_session
from vidshare.pagination import Page, PageParams
from vidshare.schemas import ToggleResponse
from vidshare.services import likes

router = APIRouter(prefix="/api/likes", tags=["likes"])
limiter = Limiter(key_func=get_remote_address)


@router.post("/toggle/{kind}/{target_id}", response_model=ToggleResponse)
@limiter.limit("60/minute")
async def toggle_like(
    request: Request,
    kind: str,
    target_id: str,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """
    Like or unlike a video, comment or tweet.

    ``kind`` is one of ``video``, ``comment``, ``tweet``. The response says
    whether the like was ``created`` or ``removed`` and the target's
    new like ``total``.

    Rate limit: 60 requests per minute per IP.
    """
    result = await likes.toggle_like(db, kind, target_id, user.id)
    return ToggleResponse(state=result.state, total=result.total)


@router.get("/videos", response_model=Page)
@limiter.limit("60/minute")
async def list_liked_videos(
    request: Request,
    params: PageParams = Depends(pagination_params),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Videos the caller has liked, most recent like first."""
    return await likes.list_liked_videos(db, user.id, params)
