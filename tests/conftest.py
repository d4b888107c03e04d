"""Shared fixtures: settings, in-memory database, fake media storage."""

import base64

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import vidshare.config
from vidshare.auth.security import hash_password
from vidshare.db.models import Base, User, Video
from vidshare.errors import UpstreamFailed
from vidshare.media import MediaRef, MediaStorage, MediaUpload

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def test_settings(monkeypatch, tmp_path):
    """Point settings at test keys and reset the cached instance."""
    monkeypatch.setenv("VS_APP_SECRET_KEY", "test-secret-key")
    monkeypatch.setenv("VS_TOKEN_ENC_KEY", base64.b64encode(b"0" * 32).decode())
    monkeypatch.setenv("VS_MEDIA_LOCAL_PATH", str(tmp_path / "media"))
    monkeypatch.setattr(vidshare.config, "_settings", None)
    yield vidshare.config.get_settings()
    monkeypatch.setattr(vidshare.config, "_settings", None)


@pytest_asyncio.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(db_engine):
    """Session factory bound to the test database."""
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(test_db):
    """Create a database session for testing."""
    async with test_db() as session:
        yield session


class FakeMediaStorage(MediaStorage):
    """In-memory media backend that records uploads and deletes."""

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_uploads_after: int | None = None
        self.fail_deletes = False
        self._uploads = 0

    async def upload(self, upload: MediaUpload, folder: str) -> MediaRef:
        if self.fail_uploads_after is not None and self._uploads >= self.fail_uploads_after:
            raise UpstreamFailed("Could not upload media file")
        self._uploads += 1
        public_id = f"{folder}/{self._uploads}-{upload.filename}"
        self.files[public_id] = upload.data
        return MediaRef(public_id=public_id, url=f"https://media.test/{public_id}")

    async def delete(self, public_id: str) -> bool:
        if self.fail_deletes:
            raise UpstreamFailed("Could not delete media file")
        self.deleted.append(public_id)
        return self.files.pop(public_id, None) is not None


@pytest.fixture
def media():
    return FakeMediaStorage()


async def create_user(db: AsyncSession, username: str, **overrides) -> User:
    """Insert a user directly (bypassing registration)."""
    fields = {
        "username": username,
        "email": f"{username}@example.com",
        "full_name": username.capitalize(),
        "avatar_url": f"https://media.test/avatars/{username}.png",
        "password_hash": hash_password(TEST_PASSWORD),
    }
    fields.update(overrides)
    user = User(**fields)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def create_video(
    db: AsyncSession, owner: User, title: str = "A video", **overrides
) -> Video:
    """Insert a video directly (bypassing media upload)."""
    fields = {
        "owner_id": owner.id,
        "title": title,
        "description": f"About {title}",
        "video_file_url": "https://media.test/videos/v.mp4",
        "video_file_public_id": "videos/v.mp4",
        "thumbnail_url": "https://media.test/thumbnails/t.png",
        "thumbnail_public_id": "thumbnails/t.png",
        "duration": 12.5,
    }
    fields.update(overrides)
    video = Video(**fields)
    db.add(video)
    await db.commit()
    await db.refresh(video)
    return video


@pytest.fixture
def make_user(db_session):
    """Factory fixture: ``await make_user("alice")``."""

    async def _make(username: str, **overrides) -> User:
        return await create_user(db_session, username, **overrides)

    return _make


@pytest.fixture
def make_video(db_session):
    """Factory fixture: ``await make_video(owner, "title", is_published=False)``."""

    async def _make(owner: User, title: str = "A video", **overrides) -> Video:
        return await create_video(db_session, owner, title, **overrides)

    return _make
