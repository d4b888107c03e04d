"""Tests for video operations."""

import pytest
from sqlalchemy import func, select

from vidshare.db.models import Comment, Like, PlaylistEntry, Video, WatchHistoryEntry
from vidshare.errors import InvalidInput, NotFound, UpstreamFailed
from vidshare.media import MediaUpload
from vidshare.pagination import PageParams
from vidshare.services import likes, videos


def _file(name: str) -> MediaUpload:
    return MediaUpload(filename=name, data=b"bytes")


@pytest.mark.asyncio
async def test_like_scenario_counts_and_flags(db_session, make_user, make_video):
    """A publishes, B likes: A sees 1 like and not liked, B sees liked."""
    alice = await make_user("alice")
    bob = await make_user("bob")
    video = await make_video(alice)

    await likes.toggle_like(db_session, "video", video.id, bob.id)

    as_alice = await videos.get_video(db_session, video.id, alice.id)
    as_bob = await videos.get_video(db_session, video.id, bob.id)
    anonymous = await videos.get_video(db_session, video.id)

    assert as_alice["like_count"] == 1
    assert as_alice["is_liked"] is False
    assert as_bob["like_count"] == 1
    assert as_bob["is_liked"] is True
    assert anonymous["is_liked"] is False
    assert as_bob["owner"]["username"] == "alice"
    assert as_bob["comment_count"] == 0

    await likes.toggle_like(db_session, "video", video.id, bob.id)

    as_bob = await videos.get_video(db_session, video.id, bob.id)
    assert as_bob["like_count"] == 0
    assert as_bob["is_liked"] is False


@pytest.mark.asyncio
async def test_unpublished_video_visible_only_to_owner(db_session, make_user, make_video):
    alice = await make_user("alice")
    bob = await make_user("bob")
    draft = await make_video(alice, "Draft", is_published=False)

    with pytest.raises(NotFound):
        await videos.get_video(db_session, draft.id, bob.id)
    with pytest.raises(NotFound):
        await videos.get_video(db_session, draft.id)

    record = await videos.get_video(db_session, draft.id, alice.id)
    assert record["title"] == "Draft"
    assert record["is_published"] is False


@pytest.mark.asyncio
async def test_get_missing_video(db_session):
    with pytest.raises(NotFound):
        await videos.get_video(db_session, "nope")


@pytest.mark.asyncio
async def test_list_videos_filters_and_sorts(db_session, make_user, make_video):
    alice = await make_user("alice")
    bob = await make_user("bob")
    cats = await make_video(alice, "Cats 100%", views=5)
    await make_video(alice, "Dogs", views=50)
    bobs = await make_video(bob, "Bob's cat", views=1)
    draft = await make_video(bob, "Hidden cat", is_published=False)

    page = await videos.list_videos(db_session, PageParams(), query="CAT")
    assert {v["id"] for v in page.data} == {cats.id, bobs.id}

    page = await videos.list_videos(db_session, PageParams(), query="cat", actor_id=bob.id)
    assert {v["id"] for v in page.data} == {cats.id, bobs.id, draft.id}

    page = await videos.list_videos(db_session, PageParams(), query="100%")
    assert [v["id"] for v in page.data] == [cats.id]

    page = await videos.list_videos(db_session, PageParams(), owner_id=bob.id)
    assert [v["id"] for v in page.data] == [bobs.id]

    page = await videos.list_videos(db_session, PageParams(), sort_by="views")
    assert [v["views"] for v in page.data] == [50, 5, 1]


@pytest.mark.asyncio
async def test_list_videos_rejects_unknown_sort(db_session):
    with pytest.raises(InvalidInput):
        await videos.list_videos(db_session, PageParams(), sort_by="password_hash")
    with pytest.raises(InvalidInput):
        await videos.list_videos(db_session, PageParams(), sort_type="sideways")


@pytest.mark.asyncio
async def test_publish_video_stores_media_refs(db_session, make_user, media):
    alice = await make_user("alice")

    video = await videos.publish_video(
        db_session,
        media,
        owner_id=alice.id,
        title="  My trip  ",
        description="Holiday",
        video_file=_file("trip.mp4"),
        thumbnail=_file("trip.png"),
        duration=42.0,
    )

    assert video.title == "My trip"
    assert video.video_file_public_id.startswith("videos/")
    assert video.thumbnail_public_id.startswith("thumbnails/")
    assert video.duration == 42.0
    assert video.views == 0
    assert video.is_published is True
    assert len(media.files) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["title", "description"])
async def test_publish_video_requires_text(db_session, make_user, media, field):
    alice = await make_user("alice")
    values = {"title": "Title", "description": "Description", field: "   "}

    with pytest.raises(InvalidInput):
        await videos.publish_video(
            db_session,
            media,
            owner_id=alice.id,
            video_file=_file("v.mp4"),
            thumbnail=_file("t.png"),
            **values,
        )
    assert media.files == {}


@pytest.mark.asyncio
async def test_publish_video_requires_files(db_session, make_user, media):
    alice = await make_user("alice")

    with pytest.raises(InvalidInput, match="Thumbnail"):
        await videos.publish_video(
            db_session, media, alice.id, "T", "D", _file("v.mp4"), None
        )
    with pytest.raises(InvalidInput, match="Video file"):
        await videos.publish_video(
            db_session, media, alice.id, "T", "D", None, _file("t.png")
        )


@pytest.mark.asyncio
async def test_failed_thumbnail_upload_discards_video_file(db_session, make_user, media):
    alice = await make_user("alice")
    media.fail_uploads_after = 1

    with pytest.raises(UpstreamFailed):
        await videos.publish_video(
            db_session, media, alice.id, "T", "D", _file("v.mp4"), _file("t.png")
        )

    assert media.files == {}
    assert len(media.deleted) == 1
    count = await db_session.scalar(select(func.count()).select_from(Video))
    assert count == 0


@pytest.mark.asyncio
async def test_update_video_replaces_thumbnail(db_session, make_user, make_video, media):
    alice = await make_user("alice")
    video = await make_video(alice, "Old")

    updated = await videos.update_video(
        db_session, media, video.id, alice.id, title="New", thumbnail=_file("new.png")
    )

    assert updated.title == "New"
    assert updated.thumbnail_public_id.startswith("thumbnails/")
    assert media.deleted == ["thumbnails/t.png"]


@pytest.mark.asyncio
async def test_update_video_cleanup_failure_does_not_fail_update(
    db_session, make_user, make_video, media
):
    alice = await make_user("alice")
    video = await make_video(alice, "Old")
    media.fail_deletes = True

    updated = await videos.update_video(
        db_session, media, video.id, alice.id, thumbnail=_file("new.png")
    )

    assert updated.thumbnail_url.endswith("new.png")


@pytest.mark.asyncio
async def test_update_video_needs_something(db_session, make_user, make_video, media):
    alice = await make_user("alice")
    video = await make_video(alice)

    with pytest.raises(InvalidInput):
        await videos.update_video(db_session, media, video.id, alice.id)
    with pytest.raises(InvalidInput):
        await videos.update_video(db_session, media, video.id, alice.id, title=" ")


@pytest.mark.asyncio
async def test_toggle_publish_status(db_session, make_user, make_video):
    alice = await make_user("alice")
    video = await make_video(alice)

    assert (await videos.toggle_publish_status(db_session, video.id, alice.id)).is_published is False
    assert (await videos.toggle_publish_status(db_session, video.id, alice.id)).is_published is True


@pytest.mark.asyncio
async def test_delete_video_removes_dependents(db_session, make_user, make_video, media):
    alice = await make_user("alice")
    bob = await make_user("bob")
    video = await make_video(alice)
    other = await make_video(alice, "Other")
    comment = Comment(owner_id=bob.id, video_id=video.id, content="hi")
    db_session.add(comment)
    await db_session.commit()
    db_session.add_all(
        [
            Like(liked_by=bob.id, video_id=video.id),
            Like(liked_by=alice.id, comment_id=comment.id),
            Like(liked_by=bob.id, video_id=other.id),
            WatchHistoryEntry(user_id=bob.id, video_id=video.id),
        ]
    )
    await db_session.commit()

    await videos.delete_video(db_session, media, video.id, alice.id)

    assert await db_session.get(Video, video.id) is None
    assert await db_session.scalar(select(func.count()).select_from(Comment)) == 0
    assert await db_session.scalar(select(func.count()).select_from(Like)) == 1
    assert await db_session.scalar(select(func.count()).select_from(PlaylistEntry)) == 0
    assert await db_session.scalar(select(func.count()).select_from(WatchHistoryEntry)) == 0
    assert set(media.deleted) == {"videos/v.mp4", "thumbnails/t.png"}


@pytest.mark.asyncio
async def test_record_view_counts_and_appends_history(db_session, make_user, make_video):
    alice = await make_user("alice")
    bob = await make_user("bob")
    video = await make_video(alice)

    await videos.record_view(db_session, video.id, bob.id)
    await videos.record_view(db_session, video.id, bob.id)

    record = await videos.get_video(db_session, video.id, bob.id)
    assert record["views"] == 2
    history = await db_session.scalar(
        select(func.count()).select_from(WatchHistoryEntry).where(
            WatchHistoryEntry.user_id == bob.id
        )
    )
    assert history == 2


@pytest.mark.asyncio
async def test_record_view_of_hidden_video(db_session, make_user, make_video):
    alice = await make_user("alice")
    bob = await make_user("bob")
    draft = await make_video(alice, is_published=False)

    with pytest.raises(NotFound):
        await videos.record_view(db_session, draft.id, bob.id)
