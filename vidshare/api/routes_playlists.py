"""Playlist endpoints."""

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.api.dependencies import pagination_params
from vidshare.auth.dependencies import optional_user, require_user
from vidshare.db.models import User
from vidshare.db.session import get_session
from vidshare.pagination import Page, PageParams
from vidshare.schemas import (
    PlaylistCreateRequest,
    PlaylistResponse,
    PlaylistUpdateRequest,
    PlaylistVideoRequest,
)
from vidshare.services import playlists

router = APIRouter(prefix="/api/playlists", tags=["playlists"])
limiter = Limiter(key_func=get_remote_address)


@router.post("", status_code=201, response_model=PlaylistResponse)
@limiter.limit("30/minute")
async def create_playlist(
    request: Request,
    body: PlaylistCreateRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """
    Create an empty playlist.

    Rate limit: 30 requests per minute per IP.
    """
    return await playlists.create_playlist(db, user.id, body.name, body.description)


@router.get("/user/{user_id}", response_model=Page)
@limiter.limit("120/minute")
async def list_user_playlists(
    request: Request,
    user_id: str,
    params: PageParams = Depends(pagination_params),
    db: AsyncSession = Depends(get_session),
):
    """A user's playlists with their video counts."""
    return await playlists.list_user_playlists(db, user_id, params)


@router.get("/{playlist_id}")
@limiter.limit("120/minute")
async def get_playlist(
    request: Request,
    playlist_id: str,
    db: AsyncSession = Depends(get_session),
):
    """Playlist header with owner summary and video count."""
    return await playlists.get_playlist(db, playlist_id)


@router.get("/{playlist_id}/videos", response_model=Page)
@limiter.limit("120/minute")
async def list_playlist_videos(
    request: Request,
    playlist_id: str,
    params: PageParams = Depends(pagination_params),
    user: User | None = Depends(optional_user),
    db: AsyncSession = Depends(get_session),
):
    """Videos in a playlist, in the order they were added."""
    return await playlists.list_playlist_videos(
        db, playlist_id, params, actor_id=user.id if user else None
    )


@router.post("/{playlist_id}/videos", status_code=201)
@limiter.limit("60/minute")
async def add_video(
    request: Request,
    playlist_id: str,
    body: PlaylistVideoRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Append a video to the caller's playlist."""
    entry = await playlists.add_video_to_playlist(db, playlist_id, body.video_id, user.id)
    return {"id": entry.id, "playlist_id": playlist_id, "video_id": entry.video_id}


@router.delete("/{playlist_id}/videos/{video_id}")
@limiter.limit("60/minute")
async def remove_video(
    request: Request,
    playlist_id: str,
    video_id: str,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Remove a video from the caller's playlist."""
    removed = await playlists.remove_video_from_playlist(db, playlist_id, video_id, user.id)
    return {"removed": removed}


@router.patch("/{playlist_id}", response_model=PlaylistResponse)
@limiter.limit("30/minute")
async def update_playlist(
    request: Request,
    playlist_id: str,
    body: PlaylistUpdateRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Rename the caller's playlist or change its description."""
    return await playlists.update_playlist(
        db, playlist_id, user.id, name=body.name, description=body.description
    )


@router.delete("/{playlist_id}")
@limiter.limit("30/minute")
async def delete_playlist(
    request: Request,
    playlist_id: str,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
):
    """Delete the caller's playlist."""
    await playlists.delete_playlist(db, playlist_id, user.id)
    return {"message": "Playlist deleted successfully"}
