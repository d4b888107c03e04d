"""Tweet endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.api.dependencies import get_media_storage, pagination_params, read_upload
from vidshare.auth.dependencies import optional_user, require_user
from vidshare.db.models import User
from vidshare.db.session import get_session
from vidshare.media import MediaStorage
from vidshare.pagination import Page, PageParams
from vidshare.schemas import ContentRequest, TweetResponse
from vidshare.services import tweets

router = APIRouter(prefix="/api/tweets", tags=["tweets"])
limiter = Limiter(key_func=get_remote_address)


@router.post("", status_code=201, response_model=TweetResponse)
@limiter.limit("30/minute")
async def create_tweet(
    request: Request,
    content: Annotated[str, Form()],
    image: UploadFile | None = File(None),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_media_storage),
):
    """
    Post a tweet (multipart form, optional image).

    Rate limit: 30 requests per minute per IP.
    """
    return await tweets.create_tweet(
        db, storage, user.id, content, image=await read_upload(image)
    )


@router.get("/user/{user_id}", response_model=Page)
@limiter.limit("120/minute")
async def list_user_tweets(
    request: Request,
    user_id: str,
    params: PageParams = Depends(pagination_params),
    user: User | None = Depends(optional_user),
    db: AsyncSession = Depends(get_session),
):
    """A user's tweets, newest first."""
    return await tweets.list_user_tweets(
        db, user_id, params, actor_id=user.id if user else None
    )


@router.patch("/{tweet_id}", response_model=TweetResponse)
@limiter.limit("30/minute")
async def update_tweet(
    request: Request,
    tweet_id: str,
    body: ContentRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Edit the caller's tweet."""
    return await tweets.update_tweet(db, tweet_id, user.id, body.content)


@router.delete("/{tweet_id}")
@limiter.limit("30/minute")
async def delete_tweet(
    request: Request,
    tweet_id: str,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_media_storage),
):
    """Delete the caller's tweet."""
    await tweets.delete_tweet(db, storage, tweet_id, user.id)
    return {"message": "Tweet deleted successfully"}
