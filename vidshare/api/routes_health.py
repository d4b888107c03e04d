"""Health check endpoints for the vidshare API."""

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from vidshare.db.session import get_engine
from vidshare.errors import ReadFailed

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def health_check():
    """
    Health check endpoint.

    Returns:
        A simple status object indicating the service is healthy
    """
    return {"ok": True}


@router.get("/readyz")
async def readiness_check():
    """
    Readiness check endpoint; the database must answer a trivial query.

    Returns:
        A simple status object indicating the service is ready to serve requests
    """
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        raise ReadFailed("Database is not reachable") from exc
    return {"ok": True}
