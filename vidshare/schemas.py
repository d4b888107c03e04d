"""Pydantic request and response models shared by the API routers."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class _FromORM(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserResponse(_FromORM):
    """The authenticated user's own account (no credentials)."""

    id: str
    username: str
    email: str
    full_name: str
    avatar_url: str
    cover_image_url: str | None = None
    created_at: datetime


class VideoResponse(_FromORM):
    id: str
    owner_id: str
    title: str
    description: str
    video_file_url: str
    thumbnail_url: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime
    updated_at: datetime


class CommentResponse(_FromORM):
    id: str
    owner_id: str
    video_id: str
    content: str
    created_at: datetime
    updated_at: datetime


class TweetResponse(_FromORM):
    id: str
    owner_id: str
    content: str
    image_url: str | None = None
    created_at: datetime
    updated_at: datetime


class PlaylistResponse(_FromORM):
    id: str
    owner_id: str
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class ToggleResponse(BaseModel):
    """Result of a like/subscription toggle."""

    state: str
    total: int


class SessionResponse(BaseModel):
    user: UserResponse
    access_token: str
    refresh_token: str


class ContentRequest(BaseModel):
    content: str


class PlaylistCreateRequest(BaseModel):
    name: str
    description: str | None = None


class PlaylistUpdateRequest(BaseModel):
    name: str | None = None
    description: str | None = None


class PlaylistVideoRequest(BaseModel):
    video_id: str


class LoginRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str


class AccountDetailsRequest(BaseModel):
    full_name: str
    email: str
