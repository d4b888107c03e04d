"""Video endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.api.dependencies import get_media_storage, pagination_params, read_upload
from vidshare.auth.dependencies import optional_user, require_user
from vidshare.db.models import User
from vidshare.db.session import get_session
from vidshare.media import MediaStorage
from vidshare.pagination import Page, PageParams
from vidshare.schemas import VideoResponse
from vidshare.services import videos

router = APIRouter(prefix="/api/videos", tags=["videos"])
limiter = Limiter(key_func=get_remote_address)


@router.get("", response_model=Page)
@limiter.limit("120/minute")
async def list_videos(
    request: Request,
    query: str | None = Query(None, description="Search in title and description"),
    owner_id: str | None = Query(None),
    sort_by: str = Query("created_at"),
    sort_type: str = Query("desc"),
    params: PageParams = Depends(pagination_params),
    user: User | None = Depends(optional_user),
    db: AsyncSession = Depends(get_session),
):
    """
    List published videos (plus the caller's own unpublished ones).

    Rate limit: 120 requests per minute per IP.
    """
    return await videos.list_videos(
        db,
        params,
        actor_id=user.id if user else None,
        query=query,
        owner_id=owner_id,
        sort_by=sort_by,
        sort_type=sort_type,
    )


@router.post("", status_code=201, response_model=VideoResponse)
@limiter.limit("10/minute")
async def publish_video(
    request: Request,
    title: Annotated[str, Form()],
    description: Annotated[str, Form()],
    is_published: Annotated[bool, Form()] = True,
    duration: Annotated[float | None, Form()] = None,
    video_file: UploadFile | None = File(None),
    thumbnail: UploadFile | None = File(None),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_media_storage),
):
    """
    Upload a video and its thumbnail and create the video record.

    Rate limit: 10 requests per minute per IP.
    """
    return await videos.publish_video(
        db,
        storage,
        owner_id=user.id,
        title=title,
        description=description,
        video_file=await read_upload(video_file),
        thumbnail=await read_upload(thumbnail),
        is_published=is_published,
        duration=duration,
    )


@router.get("/{video_id}")
@limiter.limit("120/minute")
async def get_video(
    request: Request,
    video_id: str,
    user: User | None = Depends(optional_user),
    db: AsyncSession = Depends(get_session),
):
    """
    Get a video with owner summary, like/comment counts and the caller's like flag.

    Authenticated callers also get the view counted and added to their history.
    """
    actor_id = user.id if user else None
    if actor_id is not None:
        await videos.record_view(db, video_id, actor_id)
    return await videos.get_video(db, video_id, actor_id)


@router.patch("/{video_id}", response_model=VideoResponse)
@limiter.limit("30/minute")
async def update_video(
    request: Request,
    video_id: str,
    title: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    thumbnail: UploadFile | None = File(None),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_media_storage),
):
    """Update title/description and optionally replace the thumbnail."""
    return await videos.update_video(
        db,
        storage,
        video_id,
        user.id,
        title=title,
        description=description,
        thumbnail=await read_upload(thumbnail),
    )


@router.delete("/{video_id}")
@limiter.limit("30/minute")
async def delete_video(
    request: Request,
    video_id: str,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_media_storage),
):
    """Delete the caller's video with its comments, likes and playlist entries."""
    await videos.delete_video(db, storage, video_id, user.id)
    return {"message": "Video deleted successfully"}


@router.patch("/{video_id}/publish", response_model=VideoResponse)
@limiter.limit("30/minute")
async def toggle_publish(
    request: Request,
    video_id: str,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Flip the published flag of the caller's video."""
    return await videos.toggle_publish_status(db, video_id, user.id)
