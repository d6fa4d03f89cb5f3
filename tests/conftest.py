"""Test fixtures: a fresh app on a throwaway SQLite database per test.

Testing pattern for async SQLAlchemy + FastAPI:

1. Each test builds its own Settings pointing at a SQLite file under
   tmp_path (aiosqlite driver), creates the schema, and builds an app
   with create_app(settings, media_store=FakeMediaStore()).
2. Requests go through httpx's ASGITransport with an https base url so
   the secure session cookies are sent back like a browser would.
3. Auth is real: helpers register and log in users through the API and
   hand back Bearer headers. The cookie jar is cleared after each login
   so one user's cookies never shadow another user's Bearer header.

Nothing is shared between tests, so no rollback tricks are needed.
"""

import uuid
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from vidtube.config import Settings
from vidtube.errors import UpstreamFailure
from vidtube.main import create_app
from vidtube.storage.media import MediaAsset

PASSWORD = "correct-horse-battery"


class FakeMediaStore:
    """In-memory media store that records uploads and deletes."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_uploads = False
        self.fail_deletes = False

    async def upload(self, file_path: Path, folder: str) -> MediaAsset:
        if self.fail_uploads:
            raise UpstreamFailure("Upload failed")
        public_id = f"{folder}/{uuid.uuid4().hex}{file_path.suffix}"
        self.objects[public_id] = file_path.read_bytes()
        return MediaAsset(url=f"https://media.test/{public_id}", public_id=public_id)

    async def delete(self, public_id: str) -> bool:
        if self.fail_deletes:
            return False
        self.deleted.append(public_id)
        self.objects.pop(public_id, None)
        return True


@pytest_asyncio.fixture()
async def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'vidtube.db'}",
        access_token_secret="test-access-secret-0123456789abcdefghij",
        refresh_token_secret="test-refresh-secret-0123456789abcdefghij",
        bcrypt_rounds=4,
        environment="test",
        upload_dir=tmp_path / "uploads",
        max_upload_mb=1,
        rate_limit_rpm=10_000,
        rate_limit_auth_rpm=10_000,
    )


@pytest_asyncio.fixture()
async def media():
    return FakeMediaStore()


@pytest_asyncio.fixture()
async def app(settings, media):
    application = create_app(settings, media_store=media)
    await application.state.db.create_all()
    yield application
    await application.state.db.dispose()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://test") as ac:
        yield ac


# ─── Helpers ────────────────────────────────────────────


def image(name: str = "avatar.png") -> tuple[str, bytes, str]:
    return (name, b"\x89PNG\r\n\x1a\n" + uuid.uuid4().bytes, "image/png")


async def register_user(client, username: str, email: str = None, **extra):
    """Register through the API and return the response."""
    files = {"avatar": image()}
    if extra.pop("with_cover", False):
        files["cover_image"] = image("cover.jpg")
    data = {
        "username": username,
        "email": email or f"{username}@example.com",
        "fullname": extra.pop("fullname", username.title()),
        "password": extra.pop("password", PASSWORD),
    }
    return await client.post("/api/v1/users/register", data=data, files=files)


async def login(client, username: str, password: str = PASSWORD):
    r = await client.post(
        "/api/v1/users/login", json={"username": username, "password": password}
    )
    client.cookies.clear()
    return r


async def make_user(client, username: str = None) -> dict:
    """Register + log in. Returns the user, tokens and a Bearer header."""
    username = username or f"user{uuid.uuid4().hex[:8]}"
    r = await register_user(client, username)
    assert r.status_code == 201, r.text
    r = await login(client, username)
    assert r.status_code == 200, r.text
    body = r.json()
    return {
        "user": body["user"],
        "id": body["user"]["id"],
        "access_token": body["access_token"],
        "refresh_token": body["refresh_token"],
        "headers": {"Authorization": f"Bearer {body['access_token']}"},
    }


async def upload_video(client, headers: dict, title: str = "My first video", **fields):
    data = {
        "title": title,
        "description": fields.pop("description", "A video about things"),
        "duration": fields.pop("duration", "12.5"),
    }
    files = {
        "video_file": ("clip.mp4", b"\x00\x00\x00\x18ftypmp42" + uuid.uuid4().bytes, "video/mp4"),
        "thumbnail": image("thumb.png"),
    }
    return await client.post("/api/v1/videos", data=data, files=files, headers=headers)


@pytest_asyncio.fixture()
async def alice(client):
    return await make_user(client, "alice")


@pytest_asyncio.fixture()
async def bob(client):
    return await make_user(client, "bob")


@pytest_asyncio.fixture()
async def alice_video(client, alice):
    r = await upload_video(client, alice["headers"])
    assert r.status_code == 201, r.text
    return r.json()
