"""Comment endpoints."""

from fastapi import APIRouter, Depends, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.api.dependencies import pagination_params
from vidshare.auth.dependencies import optional_user, require_user
from vidshare.db.models import User
from vidshare.db.session import get_session
from vidshare.pagination import Page, PageParams
from vidshare.schemas import CommentResponse, ContentRequest
from vidshare.services import comments

router = APIRouter(prefix="/api/comments", tags=["comments"])
limiter = Limiter(key_func=get_remote_address)


@router.get("/video/{video_id}", response_model=Page)
@limiter.limit("120/minute")
async def list_comments(
    request: Request,
    video_id: str,
    sort: str | None = Query(None, description="newest (default) or oldest"),
    params: PageParams = Depends(pagination_params),
    user: User | None = Depends(optional_user),
    db: AsyncSession = Depends(get_session),
):
    """
    List comments on a video with owner summary, like count and like flag.

    Rate limit: 120 requests per minute per IP.
    """
    return await comments.list_comments(
        db, video_id, params, actor_id=user.id if user else None, sort=sort
    )


@router.post("/video/{video_id}", status_code=201, response_model=CommentResponse)
@limiter.limit("30/minute")
async def add_comment(
    request: Request,
    video_id: str,
    body: ContentRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Comment on a published video."""
    return await comments.add_comment(db, video_id, user.id, body.content)


@router.patch("/{comment_id}", response_model=CommentResponse)
@limiter.limit("30/minute")
async def update_comment(
    request: Request,
    comment_id: str,
    body: ContentRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Edit the caller's comment."""
    return await comments.update_comment(db, comment_id, user.id, body.content)


@router.delete("/{comment_id}")
@limiter.limit("30/minute")
async def delete_comment(
    request: Request,
    comment_id: str,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Delete the caller's comment."""
    await comments.delete_comment(db, comment_id, user.id)
    return {"message": "Comment deleted successfully"}
