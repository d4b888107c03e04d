"""FastAPI dependencies for API routers."""

from fastapi import Query, UploadFile

from vidshare.config import get_settings
from vidshare.media import MediaStorage, MediaUpload, get_media_storage_backend
from vidshare.pagination import PageParams, parse_page

_media_storage: MediaStorage | None = None


def get_media_storage() -> MediaStorage:
    """Dependency returning the process-wide media backend.

    Returns:
        Configured MediaStorage instance
    """
    global _media_storage

    if _media_storage is None:
        _media_storage = get_media_storage_backend(get_settings())

    return _media_storage


def pagination_params(
    page: str | None = Query(None, description="1-based page number"),
    limit: str | None = Query(None, description="Items per page"),
) -> PageParams:
    """Parse ``page``/``limit`` query parameters with configured defaults.

    Raw strings are accepted so malformed values surface as ``invalid_input``
    rather than a validation error.
    """
    settings = get_settings()
    return parse_page(
        page,
        limit,
        default_limit=settings.page_size_default,
        max_limit=settings.page_size_max,
    )


async def read_upload(file: UploadFile | None) -> MediaUpload | None:
    """Read an uploaded form file into memory; None if nothing was sent."""
    if file is None:
        return None
    data = await file.read()
    if not data:
        return None
    return MediaUpload(
        filename=file.filename or "upload",
        data=data,
        content_type=file.content_type,
    )
