"""Users + session lifecycle tests.

Tests cover:
1. Registration (multipart, avatar required, duplicates)
2. Login → tokens + http-only cookies
3. The request gate: cookie, Bearer header, missing/invalid/expired tokens
4. Refresh rotation and reuse detection
5. Logout, change password, account updates, avatar replacement
6. Public channel profile
"""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import delete

from conftest import PASSWORD, image, login, make_user, register_user
from vidtube.auth.password import hash_password, hash_rounds
from vidtube.auth.tokens import UserClaims
from vidtube.db.models import User


def _set_cookies(response) -> dict[str, str]:
    """Map cookie name → raw Set-Cookie header value."""
    cookies = {}
    for header in response.headers.get_list("set-cookie"):
        name = header.split("=", 1)[0]
        cookies[name] = header
    return cookies


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_user(client, media):
    """Register a new user with avatar and cover image."""
    r = await register_user(client, "Carol", email="Carol@Example.com", with_cover=True)
    assert r.status_code == 201
    user = r.json()
    assert user["username"] == "carol"
    assert user["email"] == "carol@example.com"
    assert user["avatar"].startswith("https://media.test/avatars/")
    assert user["cover_image"].startswith("https://media.test/covers/")
    assert "password_hash" not in user
    assert "refresh_token" not in user
    assert len(media.objects) == 2


@pytest.mark.asyncio
async def test_register_duplicate_username(client):
    r1 = await register_user(client, "dave")
    assert r1.status_code == 201

    r2 = await register_user(client, "dave", email="other@example.com")
    assert r2.status_code == 409
    assert r2.json()["error"] == "CONFLICT"


@pytest.mark.asyncio
async def test_register_duplicate_email_uploads_nothing(client, media):
    """Uniqueness is checked before anything is uploaded."""
    await register_user(client, "erin", email="same@example.com")
    uploaded = len(media.objects)

    r = await register_user(client, "frank", email="same@example.com")
    assert r.status_code == 409
    assert len(media.objects) == uploaded


@pytest.mark.asyncio
async def test_register_requires_avatar(client):
    r = await client.post(
        "/api/v1/users/register",
        data={
            "username": "noavatar",
            "email": "noavatar@example.com",
            "fullname": "No Avatar",
            "password": PASSWORD,
        },
    )
    assert r.status_code == 422
    assert r.json()["message"] == "Avatar file is required"


@pytest.mark.asyncio
async def test_register_blank_fields(client):
    r = await client.post(
        "/api/v1/users/register",
        data={"username": "  ", "email": "x@example.com", "fullname": "X", "password": PASSWORD},
        files={"avatar": image()},
    )
    assert r.status_code == 422
    body = r.json()
    assert body["success"] is False
    assert "username" in body["message"]


@pytest.mark.asyncio
async def test_register_short_password(client):
    r = await register_user(client, "shorty", password="abc")
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_register_upload_failure(client, media):
    media.fail_uploads = True
    r = await register_user(client, "unlucky")
    assert r.status_code == 502
    assert r.json()["error"] == "UPSTREAM_FAILURE"


@pytest.mark.asyncio
async def test_register_cleans_up_local_uploads(client, settings):
    await register_user(client, "tidy", with_cover=True)
    assert list(settings.upload_dir.iterdir()) == []


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success_sets_cookies(client):
    await register_user(client, "grace")

    r = await client.post(
        "/api/v1/users/login", json={"username": "grace", "password": PASSWORD}
    )
    assert r.status_code == 200
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["username"] == "grace"
    assert body["access_token"] != body["refresh_token"]

    cookies = _set_cookies(r)
    assert set(cookies) == {"accessToken", "refreshToken"}
    for header in cookies.values():
        assert "HttpOnly" in header
        assert "Secure" in header
    assert body["access_token"] in cookies["accessToken"]
    assert body["refresh_token"] in cookies["refreshToken"]


@pytest.mark.asyncio
async def test_login_with_email(client):
    await register_user(client, "heidi")
    r = await client.post(
        "/api/v1/users/login", json={"email": "HEIDI@example.com", "password": PASSWORD}
    )
    assert r.status_code == 200
    assert r.json()["user"]["username"] == "heidi"


@pytest.mark.asyncio
async def test_login_wrong_password(client):
    """Wrong password → 401, no tokens, no cookies."""
    await register_user(client, "ivan")
    r = await client.post(
        "/api/v1/users/login", json={"username": "ivan", "password": "not-the-password"}
    )
    assert r.status_code == 401
    body = r.json()
    assert body["error"] == "INVALID_CREDENTIALS"
    assert "access_token" not in body
    assert _set_cookies(r) == {}


@pytest.mark.asyncio
async def test_login_nonexistent_user(client):
    r = await client.post(
        "/api/v1/users/login", json={"username": "nobody", "password": "whatever"}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_login_requires_identifier(client):
    r = await client.post("/api/v1/users/login", json={"password": PASSWORD})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_login_twice_issues_different_tokens(client):
    await register_user(client, "judy")
    r1 = await login(client, "judy")
    r2 = await login(client, "judy")
    assert r1.json()["access_token"] != r2.json()["access_token"]
    assert r1.json()["refresh_token"] != r2.json()["refresh_token"]


# ═══════════════════════════════════════════════════════════
# Request gate
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_me_with_bearer_token(client, alice):
    r = await client.get("/api/v1/users/me", headers=alice["headers"])
    assert r.status_code == 200
    assert r.json()["id"] == alice["id"]
    assert r.json()["username"] == "alice"


@pytest.mark.asyncio
async def test_me_with_cookie(client):
    """A browser session needs nothing but the cookies set at login."""
    await register_user(client, "mallory")
    r = await client.post(
        "/api/v1/users/login", json={"username": "mallory", "password": PASSWORD}
    )
    assert r.status_code == 200

    r = await client.get("/api/v1/users/me")
    assert r.status_code == 200
    assert r.json()["username"] == "mallory"


@pytest.mark.asyncio
async def test_cookie_wins_over_bearer_header(client, alice):
    await register_user(client, "niaj")
    await client.post("/api/v1/users/login", json={"username": "niaj", "password": PASSWORD})

    r = await client.get("/api/v1/users/me", headers=alice["headers"])
    assert r.json()["username"] == "niaj"


@pytest.mark.asyncio
async def test_me_without_token(client):
    r = await client.get("/api/v1/users/me")
    assert r.status_code == 401
    assert r.json()["error"] == "MISSING_TOKEN"
    assert r.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_me_with_garbage_token(client):
    r = await client.get(
        "/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert r.status_code == 401
    assert r.json()["error"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_refresh_token_is_not_an_access_token(client, alice):
    """Refresh tokens are signed with a different secret."""
    r = await client.get(
        "/api/v1/users/me",
        headers={"Authorization": f"Bearer {alice['refresh_token']}"},
    )
    assert r.status_code == 401
    assert r.json()["error"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_expired_access_token(client, app, alice):
    token = app.state.tokens.issue_access_token(
        UserClaims(id=uuid.UUID(alice["id"]), email="alice@example.com", username="alice"),
        lifetime=timedelta(seconds=-5),
    )
    r = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["error"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_token_for_deleted_user(client, app, alice):
    async with app.state.db.session_factory() as session:
        await session.execute(delete(User).where(User.id == uuid.UUID(alice["id"])))
        await session.commit()

    r = await client.get("/api/v1/users/me", headers=alice["headers"])
    assert r.status_code == 401
    assert r.json()["error"] == "UNKNOWN_USER"


# ═══════════════════════════════════════════════════════════
# Refresh
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_refresh_rotates_tokens(client, alice):
    r = await client.post(
        "/api/v1/users/refresh-token", json={"refresh_token": alice["refresh_token"]}
    )
    assert r.status_code == 200
    tokens = r.json()
    assert tokens["refresh_token"] != alice["refresh_token"]
    assert set(_set_cookies(r)) == {"accessToken", "refreshToken"}

    client.cookies.clear()
    me = await client.get(
        "/api/v1/users/me", headers={"Authorization": f"Bearer {tokens['access_token']}"}
    )
    assert me.json()["id"] == alice["id"]


@pytest.mark.asyncio
async def test_refresh_token_reuse_is_rejected(client, alice):
    """After rotation the old refresh token no longer matches."""
    r1 = await client.post(
        "/api/v1/users/refresh-token", json={"refresh_token": alice["refresh_token"]}
    )
    assert r1.status_code == 200
    client.cookies.clear()

    r2 = await client.post(
        "/api/v1/users/refresh-token", json={"refresh_token": alice["refresh_token"]}
    )
    assert r2.status_code == 401
    assert r2.json()["error"] == "TOKEN_MISMATCH"


@pytest.mark.asyncio
async def test_refresh_from_cookie(client):
    await register_user(client, "olivia")
    await client.post("/api/v1/users/login", json={"username": "olivia", "password": PASSWORD})

    r = await client.post("/api/v1/users/refresh-token")
    assert r.status_code == 200
    # The rotated cookie is stored, so a second cookie refresh works too.
    r = await client.post("/api/v1/users/refresh-token")
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_refresh_without_token(client):
    r = await client.post("/api/v1/users/refresh-token")
    assert r.status_code == 401
    assert r.json()["error"] == "MISSING_TOKEN"


@pytest.mark.asyncio
async def test_refresh_with_access_token(client, alice):
    r = await client.post(
        "/api/v1/users/refresh-token", json={"refresh_token": alice["access_token"]}
    )
    assert r.status_code == 401
    assert r.json()["error"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_new_login_invalidates_previous_refresh_token(client, alice):
    await login(client, "alice")
    r = await client.post(
        "/api/v1/users/refresh-token", json={"refresh_token": alice["refresh_token"]}
    )
    assert r.status_code == 401
    assert r.json()["error"] == "TOKEN_MISMATCH"


# ═══════════════════════════════════════════════════════════
# Logout + account
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_logout_revokes_refresh_token(client, alice):
    r = await client.post("/api/v1/users/logout", headers=alice["headers"])
    assert r.status_code == 200
    cookies = _set_cookies(r)
    assert set(cookies) == {"accessToken", "refreshToken"}
    assert all("Max-Age=0" in header for header in cookies.values())

    r = await client.post(
        "/api/v1/users/refresh-token", json={"refresh_token": alice["refresh_token"]}
    )
    assert r.status_code == 401
    assert r.json()["error"] == "TOKEN_MISMATCH"


@pytest.mark.asyncio
async def test_logout_requires_auth(client):
    r = await client.post("/api/v1/users/logout")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_change_password(client, alice):
    r = await client.post(
        "/api/v1/users/change-password",
        json={"old_password": PASSWORD, "new_password": "a-brand-new-password"},
        headers=alice["headers"],
    )
    assert r.status_code == 200

    assert (await login(client, "alice")).status_code == 401
    assert (await login(client, "alice", "a-brand-new-password")).status_code == 200

    # The refresh token issued before the change is revoked.
    r = await client.post(
        "/api/v1/users/refresh-token", json={"refresh_token": alice["refresh_token"]}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_change_password_wrong_old_password(client, alice):
    r = await client.post(
        "/api/v1/users/change-password",
        json={"old_password": "nope-nope-nope", "new_password": "a-brand-new-password"},
        headers=alice["headers"],
    )
    assert r.status_code == 401
    assert r.json()["error"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_update_account(client, alice):
    r = await client.patch(
        "/api/v1/users/me",
        json={"fullname": "Alice Liddell", "email": "  "},
        headers=alice["headers"],
    )
    assert r.status_code == 200
    assert r.json()["fullname"] == "Alice Liddell"
    assert r.json()["email"] == "alice@example.com"


@pytest.mark.asyncio
async def test_update_account_email_taken(client, alice, bob):
    r = await client.patch(
        "/api/v1/users/me", json={"email": "bob@example.com"}, headers=alice["headers"]
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_update_account_requires_a_field(client, alice):
    r = await client.patch("/api/v1/users/me", json={}, headers=alice["headers"])
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_replace_avatar_deletes_old_asset(client, alice, media):
    old_avatar = alice["user"]["avatar"]
    old_public_id = old_avatar.removeprefix("https://media.test/")

    r = await client.patch(
        "/api/v1/users/me/avatar",
        files={"avatar": image("new.png")},
        headers=alice["headers"],
    )
    assert r.status_code == 200
    assert r.json()["avatar"] != old_avatar
    assert media.deleted == [old_public_id]


@pytest.mark.asyncio
async def test_replace_cover_image(client, alice):
    r = await client.patch(
        "/api/v1/users/me/cover-image",
        files={"cover_image": image("cover.png")},
        headers=alice["headers"],
    )
    assert r.status_code == 200
    assert r.json()["cover_image"].startswith("https://media.test/covers/")


@pytest.mark.asyncio
async def test_replace_avatar_requires_file(client, alice):
    r = await client.patch("/api/v1/users/me/avatar", headers=alice["headers"])
    assert r.status_code == 422


# ═══════════════════════════════════════════════════════════
# Channel profile
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_channel_profile(client, alice, bob):
    await client.post(f"/api/v1/subscriptions/channels/{alice['id']}", headers=bob["headers"])

    r = await client.get("/api/v1/users/channel/alice", headers=bob["headers"])
    assert r.status_code == 200
    profile = r.json()
    assert profile["subscribers_count"] == 1
    assert profile["subscribed_to_count"] == 0
    assert profile["is_subscribed"] is True
    assert "email" not in profile

    anonymous = await client.get("/api/v1/users/channel/alice")
    assert anonymous.json()["is_subscribed"] is False


@pytest.mark.asyncio
async def test_channel_profile_unknown(client):
    r = await client.get("/api/v1/users/channel/ghost")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_make_user_helper_isolation(client):
    """Two logged-in users keep their own identities."""
    u1 = await make_user(client)
    u2 = await make_user(client)
    r1 = await client.get("/api/v1/users/me", headers=u1["headers"])
    r2 = await client.get("/api/v1/users/me", headers=u2["headers"])
    assert r1.json()["id"] == u1["id"]
    assert r2.json()["id"] == u2["id"]


@pytest.mark.asyncio
async def test_login_rehashes_password_with_current_cost(client, app, alice):
    """Hashes made with another cost are upgraded on the next good login."""
    user_id = uuid.UUID(alice["id"])
    async with app.state.db.session_factory() as session:
        user = await session.get(User, user_id)
        user.password_hash = hash_password(PASSWORD, rounds=5)
        await session.commit()

    assert (await login(client, "alice")).status_code == 200

    async with app.state.db.session_factory() as session:
        user = await session.get(User, user_id)
        assert hash_rounds(user.password_hash) == 4
