"""Database module for vidshare."""

from vidshare.db.models import (
    Base,
    Comment,
    Like,
    Playlist,
    PlaylistEntry,
    Subscription,
    Tweet,
    User,
    Video,
    WatchHistoryEntry,
)
from vidshare.db.session import get_engine, get_session, get_sessionmaker, store_guard

__all__ = [
    "Base",
    "Comment",
    "Like",
    "Playlist",
    "PlaylistEntry",
    "Subscription",
    "Tweet",
    "User",
    "Video",
    "WatchHistoryEntry",
    "get_session",
    "get_engine",
    "get_sessionmaker",
    "store_guard",
]
