"""SQLAlchemy models for vidshare.

Each table is one named entity collection. Edge tables (``likes``,
``subscriptions``) carry unique constraints so at most one edge exists per
(actor, target) pair.
"""

import itertools
import secrets
import time
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


_PROCESS_TAG = secrets.token_hex(4)
_counter = itertools.count(secrets.randbelow(1 << 20))


def uid() -> str:
    """Generate a sortable string id for primary keys.

    Layout is millisecond timestamp, process tag, counter (all hex), so ids
    generated later by the same process always compare greater.
    """
    millis = time.time_ns() // 1_000_000
    return f"{millis:012x}{_PROCESS_TAG}{next(_counter) & 0xFFFFFF:06x}"


class User(Base):
    """Registered user; doubles as a channel."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=uid)
    username: Mapped[str] = mapped_column(String, unique=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String)
    avatar_url: Mapped[str] = mapped_column(String)
    avatar_public_id: Mapped[str | None] = mapped_column(String, nullable=True)
    cover_image_url: Mapped[str | None] = mapped_column(String, nullable=True)
    cover_image_public_id: Mapped[str | None] = mapped_column(String, nullable=True)
    password_hash: Mapped[str] = mapped_column(String)
    refresh_token_enc: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class Video(Base):
    """Uploaded video; visible to others only while published."""

    __tablename__ = "videos"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=uid)
    owner_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String)
    description: Mapped[str] = mapped_column(Text)
    video_file_url: Mapped[str] = mapped_column(String)
    video_file_public_id: Mapped[str] = mapped_column(String)
    thumbnail_url: Mapped[str] = mapped_column(String)
    thumbnail_public_id: Mapped[str] = mapped_column(String)
    duration: Mapped[float] = mapped_column(Float, default=0.0)
    views: Mapped[int] = mapped_column(Integer, default=0)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class Comment(Base):
    """Comment left on a video."""

    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=uid)
    owner_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    video_id: Mapped[str] = mapped_column(
        ForeignKey("videos.id", ondelete="CASCADE"), index=True
    )
    content: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class Tweet(Base):
    """Short text post, optionally with an image."""

    __tablename__ = "tweets"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=uid)
    owner_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    content: Mapped[str] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)
    image_public_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class Like(Base):
    """Like edge; exactly one of video_id, comment_id, tweet_id is set."""

    __tablename__ = "likes"
    __table_args__ = (
        # NULL targets never collide, so each constraint only binds its own kind
        UniqueConstraint("liked_by", "video_id", name="uq_likes_video"),
        UniqueConstraint("liked_by", "comment_id", name="uq_likes_comment"),
        UniqueConstraint("liked_by", "tweet_id", name="uq_likes_tweet"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=uid)
    liked_by: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    video_id: Mapped[str | None] = mapped_column(
        ForeignKey("videos.id", ondelete="CASCADE"), nullable=True, index=True
    )
    comment_id: Mapped[str | None] = mapped_column(
        ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True
    )
    tweet_id: Mapped[str | None] = mapped_column(
        ForeignKey("tweets.id", ondelete="CASCADE"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class Subscription(Base):
    """Subscription edge from a subscriber to a channel (both users)."""

    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("subscriber_id", "channel_id", name="uq_subscriptions_pair"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=uid)
    subscriber_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    channel_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class Playlist(Base):
    """Named, ordered collection of videos owned by a user."""

    __tablename__ = "playlists"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=uid)
    owner_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class PlaylistEntry(Base):
    """One position in a playlist; the same video may appear many times."""

    __tablename__ = "playlist_entries"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=uid)
    playlist_id: Mapped[str] = mapped_column(
        ForeignKey("playlists.id", ondelete="CASCADE"), index=True
    )
    video_id: Mapped[str] = mapped_column(
        ForeignKey("videos.id", ondelete="CASCADE"), index=True
    )
    added_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class WatchHistoryEntry(Base):
    """A single view of a video by a user; duplicates are expected."""

    __tablename__ = "watch_history"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=uid)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    video_id: Mapped[str] = mapped_column(
        ForeignKey("videos.id", ondelete="CASCADE"), index=True
    )
    watched_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
