"""Media storage for uploaded files (local filesystem or Cloudinary)."""

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from vidshare.config import Settings
from vidshare.db.models import uid
from vidshare.errors import UpstreamFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaUpload:
    """Raw file handed over by the transport layer."""

    filename: str
    data: bytes
    content_type: str | None = None


@dataclass(frozen=True)
class MediaRef:
    """Reference to a stored file."""

    public_id: str
    url: str
    duration: float | None = None


class MediaStorage(ABC):
    """Abstract media storage backend."""

    @abstractmethod
    async def upload(self, upload: MediaUpload, folder: str) -> MediaRef:
        """
        Store a file and return a reference to it.

        Args:
            upload: File name, bytes and content type
            folder: Logical folder (e.g. "videos", "thumbnails", "avatars")

        Returns:
            MediaRef with public id and URL

        Raises:
            UpstreamFailed: If the backend rejects or fails the upload
        """
        pass

    @abstractmethod
    async def delete(self, public_id: str) -> bool:
        """
        Delete a stored file.

        Args:
            public_id: Identifier returned by upload()

        Returns:
            True if deleted, False if not found

        Raises:
            UpstreamFailed: If the backend fails the request
        """
        pass


class LocalMediaStorage(MediaStorage):
    """Local filesystem media backend."""

    def __init__(self, settings: Settings):
        self.base_path = Path(settings.media_local_path)
        self.url_base = settings.media_url_base.rstrip("/")

        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve(self, public_id: str) -> Path:
        file_path = self.base_path / public_id

        # Never touch files outside the media directory
        if not file_path.resolve().is_relative_to(self.base_path.resolve()):
            raise ValueError(f"Invalid media id: {public_id}")

        return file_path

    async def upload(self, upload: MediaUpload, folder: str) -> MediaRef:
        """Write the file under ``folder`` with a generated name."""
        suffix = PurePosixPath(upload.filename).suffix.lower()
        public_id = f"{folder}/{uid()}{suffix}"

        try:
            file_path = self._resolve(public_id)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(upload.data)
        except (OSError, ValueError) as exc:
            logger.error(f"Failed to store media locally: {public_id}", exc_info=True)
            raise UpstreamFailed("Could not store media file") from exc

        logger.info(f"Stored media locally: {file_path}")
        return MediaRef(public_id=public_id, url=f"{self.url_base}/{public_id}")

    async def delete(self, public_id: str) -> bool:
        """Remove the file from the media directory."""
        try:
            file_path = self._resolve(public_id)
        except ValueError:
            logger.error(f"Attempted to delete file outside media directory: {public_id}")
            return False

        try:
            if file_path.exists():
                file_path.unlink()
                logger.info(f"Deleted media from local storage: {file_path}")
                return True
        except OSError as exc:
            raise UpstreamFailed("Could not delete media file") from exc

        return False


class CloudinaryMediaStorage(MediaStorage):
    """Cloudinary backend using the official SDK."""

    def __init__(self, settings: Settings):
        if not (
            settings.cloudinary_cloud_name
            and settings.cloudinary_api_key
            and settings.cloudinary_api_secret
        ):
            raise ValueError(
                "Cloudinary cloud name, API key and API secret are required "
                "when using the cloudinary media backend"
            )

        # Lazy import to avoid requiring cloudinary for local-only deployments
        try:
            import cloudinary
            import cloudinary.exceptions
            import cloudinary.uploader
        except ImportError:
            raise ImportError(
                "cloudinary is required for the Cloudinary media backend. "
                "Install with: pip install cloudinary"
            )

        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )
        self.uploader = cloudinary.uploader
        self.sdk_error = cloudinary.exceptions.Error
        self.timeout = settings.media_upload_timeout_seconds

    async def upload(self, upload: MediaUpload, folder: str) -> MediaRef:
        """Upload with ``resource_type=auto`` so videos report their duration."""
        # The SDK is blocking; keep it off the event loop
        try:
            data = await asyncio.to_thread(
                self.uploader.upload,
                io.BytesIO(upload.data),
                filename=upload.filename,
                folder=folder,
                resource_type="auto",
                timeout=self.timeout,
            )
        except self.sdk_error as exc:
            logger.error(f"Cloudinary upload failed for {upload.filename}", exc_info=True)
            raise UpstreamFailed("Could not upload media file") from exc

        # resource_type is needed again when deleting
        public_id = f"{data.get('resource_type', 'image')}:{data['public_id']}"
        duration = data.get("duration")
        logger.info(f"Uploaded media to Cloudinary: {public_id}")
        return MediaRef(
            public_id=public_id,
            url=data["secure_url"],
            duration=float(duration) if duration is not None else None,
        )

    async def delete(self, public_id: str) -> bool:
        """Destroy the asset and invalidate cached copies."""
        resource_type, _, asset_id = public_id.partition(":")
        if not asset_id:
            resource_type, asset_id = "image", public_id

        try:
            data = await asyncio.to_thread(
                self.uploader.destroy,
                asset_id,
                resource_type=resource_type,
                invalidate=True,
                timeout=self.timeout,
            )
        except self.sdk_error as exc:
            logger.error(f"Cloudinary delete failed for {public_id}", exc_info=True)
            raise UpstreamFailed("Could not delete media file") from exc

        return data.get("result") == "ok"


async def discard_media(storage: MediaStorage, *public_ids: str | None) -> None:
    """Best-effort delete of orphaned or replaced media.

    Failures are logged and swallowed so they never mask the caller's result
    or original error.
    """
    for public_id in public_ids:
        if not public_id:
            continue
        try:
            await storage.delete(public_id)
        except UpstreamFailed:
            logger.warning(f"Could not clean up media {public_id}", exc_info=True)


def get_media_storage_backend(settings: Settings) -> MediaStorage:
    """
    Factory function to get the configured media backend.

    Args:
        settings: Application settings

    Returns:
        Configured media storage instance
    """
    if settings.media_storage_backend == "local":
        return LocalMediaStorage(settings)
    elif settings.media_storage_backend == "cloudinary":
        return CloudinaryMediaStorage(settings)
    else:
        raise ValueError(f"Unknown media backend: {settings.media_storage_backend}")
