"""Tests for API endpoints."""

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

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
from vidshare.api.dependencies import get_media_storage
from vidshare.api.errors import service_error_handler
from vidshare.auth.dependencies import ACCESS_COOKIE
from vidshare.auth.security import create_access_token
from vidshare.db.session import get_session
from vidshare.errors import ServiceError

ROUTERS = (
    health_router,
    users_router,
    videos_router,
    comments_router,
    likes_router,
    subscriptions_router,
    tweets_router,
    playlists_router,
    channels_router,
)


def override_get_session(sessionmaker):
    """Create a dependency override for get_session."""

    async def _override():
        async with sessionmaker() as session:
            yield session

    return _override


def auth(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest_asyncio.fixture
async def client(test_db, media):
    """HTTP client against an app wired to the test database and fake media."""
    app = FastAPI()
    app.add_exception_handler(ServiceError, service_error_handler)
    for router in ROUTERS:
        app.include_router(router)
    app.dependency_overrides[get_session] = override_get_session(test_db)
    app.dependency_overrides[get_media_storage] = lambda: media

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# Health check tests


@pytest.mark.asyncio
async def test_healthz_returns_200(client):
    response = await client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


# Account tests


@pytest.mark.asyncio
async def test_register_login_and_me(client):
    response = await client.post(
        "/api/users/register",
        data={
            "username": "Alice",
            "email": "alice@example.com",
            "full_name": "Alice Liddell",
            "password": "wonderland-1",
        },
        files={"avatar": ("alice.png", b"png-bytes", "image/png")},
    )
    assert response.status_code == 201
    registered = response.json()
    assert registered["username"] == "alice"
    assert "password_hash" not in registered
    assert "refresh_token_enc" not in registered

    response = await client.post(
        "/api/users/login", json={"email": "alice@example.com", "password": "wonderland-1"}
    )
    assert response.status_code == 200
    session = response.json()
    assert session["user"]["id"] == registered["id"]
    assert response.cookies.get(ACCESS_COOKIE) == session["access_token"]

    response = await client.get(
        "/api/users/me",
        headers={"Authorization": f"Bearer {session['access_token']}"},
    )
    assert response.status_code == 200
    assert response.json()["email"] == "alice@example.com"

    response = await client.post(
        "/api/users/refresh-token", json={"refresh_token": session["refresh_token"]}
    )
    assert response.status_code == 200
    assert response.json()["refresh_token"] != session["refresh_token"]


@pytest.mark.asyncio
async def test_register_without_avatar_is_invalid(client):
    response = await client.post(
        "/api/users/register",
        data={
            "username": "bob",
            "email": "bob@example.com",
            "full_name": "Bob",
            "password": "builder-123",
        },
    )

    assert response.status_code == 400
    assert response.json() == {"error": "invalid_input", "message": "Avatar file is required"}


@pytest.mark.asyncio
async def test_me_requires_authentication(client):
    response = await client.get("/api/users/me")
    assert response.status_code == 401

    response = await client.get("/api/users/me", headers={"Authorization": "Bearer junk"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_access_cookie_authenticates(client, make_user):
    alice = await make_user("alice")

    response = await client.get(
        "/api/users/me", cookies={ACCESS_COOKIE: create_access_token(alice.id)}
    )

    assert response.status_code == 200
    assert response.json()["id"] == alice.id


# Video tests


@pytest.mark.asyncio
async def test_publish_like_and_view_video(client, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    response = await client.post(
        "/api/videos",
        data={"title": "Cats", "description": "All about cats"},
        files={
            "video_file": ("cats.mp4", b"mp4", "video/mp4"),
            "thumbnail": ("cats.png", b"png", "image/png"),
        },
        headers=auth(alice),
    )
    assert response.status_code == 201
    video_id = response.json()["id"]

    response = await client.post(f"/api/likes/toggle/video/{video_id}", headers=auth(bob))
    assert response.status_code == 200
    assert response.json() == {"state": "created", "total": 1}

    response = await client.get(f"/api/videos/{video_id}", headers=auth(bob))
    assert response.status_code == 200
    video = response.json()
    assert video["like_count"] == 1
    assert video["is_liked"] is True
    assert video["views"] == 1
    assert video["owner"]["username"] == "alice"

    response = await client.get(f"/api/videos/{video_id}")
    assert response.json()["is_liked"] is False

    response = await client.get("/api/users/history", headers=auth(bob))
    assert [r["video"]["id"] for r in response.json()["data"]] == [video_id]


@pytest.mark.asyncio
async def test_hidden_video_is_not_found(client, make_user, make_video):
    alice = await make_user("alice")
    bob = await make_user("bob")
    draft = await make_video(alice, is_published=False)

    response = await client.get(f"/api/videos/{draft.id}", headers=auth(bob))
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"

    response = await client.get(f"/api/videos/{draft.id}", headers=auth(alice))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_non_owner_cannot_delete_video(client, make_user, make_video):
    alice = await make_user("alice")
    bob = await make_user("bob")
    video = await make_video(alice)

    response = await client.delete(f"/api/videos/{video.id}", headers=auth(bob))
    assert response.status_code == 403
    assert response.json()["error"] == "unauthorized"

    response = await client.delete(f"/api/videos/{video.id}", headers=auth(alice))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_list_videos_pagination(client, make_user, make_video):
    alice = await make_user("alice")
    for i in range(11):
        await make_video(alice, f"v{i}")

    response = await client.get("/api/videos", params={"page": 1})
    body = response.json()
    assert response.status_code == 200
    assert len(body["data"]) == 10
    assert body["has_more"] is True

    response = await client.get("/api/videos", params={"page": 2})
    body = response.json()
    assert len(body["data"]) == 1
    assert body["has_more"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"page": "0"}, {"limit": "-1"}, {"page": "abc"}])
async def test_invalid_pagination_is_rejected(client, params):
    response = await client.get("/api/videos", params=params)

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_input"


# Comment, subscription, playlist and channel tests


@pytest.mark.asyncio
async def test_comment_flow(client, make_user, make_video):
    alice = await make_user("alice")
    video = await make_video(alice)

    response = await client.get(f"/api/comments/video/{video.id}")
    assert response.status_code == 200
    assert response.json()["data"] == []

    response = await client.post(
        f"/api/comments/video/{video.id}", json={"content": "  hi  "}, headers=auth(alice)
    )
    assert response.status_code == 201
    comment_id = response.json()["id"]

    response = await client.post(
        f"/api/comments/video/{video.id}", json={"content": " "}, headers=auth(alice)
    )
    assert response.status_code == 400

    response = await client.get(f"/api/comments/video/{video.id}")
    [comment] = response.json()["data"]
    assert comment["id"] == comment_id
    assert comment["content"] == "hi"


@pytest.mark.asyncio
async def test_subscription_flow(client, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    response = await client.post(f"/api/subscriptions/channel/{alice.id}", headers=auth(bob))
    assert response.json() == {"state": "created", "total": 1}

    response = await client.post(f"/api/subscriptions/channel/{bob.id}", headers=auth(bob))
    assert response.status_code == 400

    response = await client.get(f"/api/subscriptions/channel/{alice.id}/subscribers")
    assert [r["subscriber"]["id"] for r in response.json()["data"]] == [bob.id]

    response = await client.get("/api/channels/c/alice", headers=auth(bob))
    profile = response.json()
    assert profile["subscriber_count"] == 1
    assert profile["is_subscribed"] is True
    assert "email" not in profile


@pytest.mark.asyncio
async def test_playlist_flow(client, make_user, make_video):
    alice = await make_user("alice")
    bob = await make_user("bob")
    video = await make_video(alice)

    response = await client.post(
        "/api/playlists", json={"name": "Faves"}, headers=auth(alice)
    )
    assert response.status_code == 201
    playlist_id = response.json()["id"]

    response = await client.post(
        f"/api/playlists/{playlist_id}/videos", json={"video_id": video.id}, headers=auth(bob)
    )
    assert response.status_code == 403

    response = await client.post(
        f"/api/playlists/{playlist_id}/videos", json={"video_id": video.id}, headers=auth(alice)
    )
    assert response.status_code == 201

    response = await client.get(f"/api/playlists/{playlist_id}")
    assert response.json()["video_count"] == 1

    response = await client.get(f"/api/playlists/{playlist_id}/videos")
    assert [r["video"]["id"] for r in response.json()["data"]] == [video.id]


@pytest.mark.asyncio
async def test_channel_stats_only_for_owner(client, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    response = await client.get(f"/api/channels/{alice.id}/stats", headers=auth(alice))
    assert response.status_code == 200
    assert response.json()["video_count"] == 0

    response = await client.get(f"/api/channels/{alice.id}/stats", headers=auth(bob))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_app_wires_routes_and_headers(test_db):
    """The application factory registers every router and security headers."""
    from main import create_app

    app = create_app()
    app.dependency_overrides[get_session] = override_get_session(test_db)

    assert app.url_path_for("get_video", video_id="v1") == "/api/videos/v1"
    assert (
        app.url_path_for("toggle_like", kind="video", target_id="v1")
        == "/api/likes/toggle/video/v1"
    )
    assert app.url_path_for("get_channel_profile", username="alice") == "/api/channels/c/alice"
    assert app.url_path_for("health_check") == "/healthz"

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/videos/missing")

    assert response.status_code == 404
    assert response.json() == {"error": "not_found", "message": "Video not found"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
