"""API routers for vidshare."""

from vidshare.api.routes_channels import router as channels_router
from vidshare.api.routes_comments import router as comments_router
from vidshare.api.routes_health import router as health_router
from vidshare.api.routes_likes import router as likes_router
from vidshare.api.routes_playlists import router as playlists_router
from vidshare.api.routes_subscriptions import router as subscriptions_router
from vidshare.api.routes_tweets import router as tweets_router
from vidshare.api.routes_users import router as users_router
from vidshare.api.routes_videos import router as videos_router

__all__ = [
    "health_router",
    "users_router",
    "videos_router",
    "comments_router",
    "likes_router",
    "subscriptions_router",
    "tweets_router",
    "playlists_router",
    "channels_router",
]
