"""vidshare - Main application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from vidshare.api import (
    channels_router,
    comments_router,
    health_router,
    likes_router,
    playlists_router,
    subscriptions_router,
    tweets_router,
    users_router,
    videos_router,
)
from vidshare.api.errors import service_error_handler
from vidshare.config import get_settings
from vidshare.db.session import get_engine, init_models
from vidshare.errors import ServiceError
from vidshare.logging import setup_logging

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Prevent clickjacking attacks
        response.headers["X-Frame-Options"] = "DENY"

        # JSON API plus uploaded media; nothing else is served
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "img-src 'self' data: https:; "
            "media-src 'self' https:; "
            "frame-ancestors 'none'"
        )

        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    setup_logging()
    if get_settings().create_tables:
        await init_models()
    logger.info("vidshare started")
    yield
    await get_engine().dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="vidshare",
        description="Video and post sharing backend with likes, comments, "
        "subscriptions and playlists",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Configure rate limiting
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Service errors render as {"error": code, "message": message}
    app.add_exception_handler(ServiceError, service_error_handler)

    # Add security headers middleware
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Authorization"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(videos_router)
    app.include_router(comments_router)
    app.include_router(likes_router)
    app.include_router(subscriptions_router)
    app.include_router(tweets_router)
    app.include_router(playlists_router)
    app.include_router(channels_router)

    # Serve locally stored uploads
    media_dir = Path(settings.media_local_path)
    if settings.media_storage_backend == "local" and media_dir.exists():
        app.mount("/media", StaticFiles(directory=str(media_dir)), name="media")

    return app


app = create_app()


def main():
    """Entry point for running the application."""
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
