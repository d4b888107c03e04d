"""Rendering of service errors as JSON responses."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from vidshare.errors import ServiceError

logger = logging.getLogger(__name__)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a ServiceError as ``{"error": code, "message": message}``."""
    if exc.status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc.code}",
            extra={"path": request.url.path, "error_code": exc.code},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )
