"""SQLAlchemy async session management."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from vidshare.config import get_settings
from vidshare.errors import ServiceError

logger = logging.getLogger(__name__)

_engine = None
_sessionmaker = None


def get_engine():
    """Get or create the async database engine."""
    global _engine
    if _engine:
        return _engine
    url = get_settings().database_url
    # Ensure SQLite URLs use async driver
    if url.startswith("sqlite:///"):
        url = url.replace("sqlite:///", "sqlite+aiosqlite:///")
    _engine = create_async_engine(url, future=True)
    return _engine


def get_sessionmaker():
    """Get or create the async session maker."""
    global _sessionmaker
    if _sessionmaker:
        return _sessionmaker
    _sessionmaker = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _sessionmaker


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for FastAPI routes to get an async database session."""
    async with get_sessionmaker()() as session:
        yield session


async def init_models() -> None:
    """Create any missing tables declared on the model metadata."""
    from vidshare.db.models import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created/verified")


@asynccontextmanager
async def store_guard(
    db: AsyncSession, failure: type[ServiceError], action: str
) -> AsyncGenerator[None, None]:
    """Translate store errors raised inside the block into ``failure``.

    The session is rolled back so it stays usable; the original exception is
    chained and logged. Errors that are already ServiceErrors pass through.

    Args:
        db: Session the guarded calls run on
        failure: ReadFailed or WriteFailed (or another ServiceError subclass)
        action: Short description used in the log line and error message
    """
    try:
        yield
    except (SQLAlchemyError, asyncio.TimeoutError) as exc:
        await db.rollback()
        logger.error(f"Store call failed while trying to {action}", exc_info=True)
        raise failure(f"Could not {action}") from exc
