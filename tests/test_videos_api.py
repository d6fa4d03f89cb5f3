"""Video API tests: upload, visibility, ownership, publish toggle, delete."""

import pytest

from conftest import image, upload_video


# ═══════════════════════════════════════════════════════════
# Upload
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_upload_video(client, alice, media):
    r = await upload_video(client, alice["headers"], title="  Cats  ", duration="61")
    assert r.status_code == 201
    video = r.json()
    assert video["title"] == "Cats"
    assert video["duration"] == 61.0
    assert video["views"] == 0
    assert video["is_published"] is True
    assert video["owner_id"] == alice["id"]
    assert video["video_file"].startswith("https://media.test/videos/")
    assert video["thumbnail"].startswith("https://media.test/thumbnails/")


@pytest.mark.asyncio
async def test_upload_requires_auth(client):
    r = await upload_video(client, {})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_upload_requires_thumbnail(client, alice):
    r = await client.post(
        "/api/v1/videos",
        data={"title": "t", "description": "d", "duration": "3"},
        files={"video_file": ("clip.mp4", b"\x00\x01\x02", "video/mp4")},
        headers=alice["headers"],
    )
    assert r.status_code == 422
    assert r.json()["message"] == "Thumbnail is required"


@pytest.mark.asyncio
async def test_upload_rejects_bad_duration(client, alice):
    r = await upload_video(client, alice["headers"], duration="ten")
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_upload_rejects_empty_file(client, alice):
    r = await client.post(
        "/api/v1/videos",
        data={"title": "t", "description": "d", "duration": "3"},
        files={"video_file": ("clip.mp4", b"", "video/mp4"), "thumbnail": image()},
        headers=alice["headers"],
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_upload_rejects_oversized_file(client, alice, settings):
    too_big = b"\x00" * (settings.max_upload_bytes + 1)
    r = await client.post(
        "/api/v1/videos",
        data={"title": "t", "description": "d", "duration": "3"},
        files={"video_file": ("clip.mp4", too_big, "video/mp4"), "thumbnail": image()},
        headers=alice["headers"],
    )
    assert r.status_code == 422
    assert list(settings.upload_dir.iterdir()) == []


# ═══════════════════════════════════════════════════════════
# Read
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_get_video_public(client, alice_video):
    r = await client.get(f"/api/v1/videos/{alice_video['id']}")
    assert r.status_code == 200
    assert r.json()["id"] == alice_video["id"]


@pytest.mark.asyncio
async def test_list_videos_newest_first(client, alice, bob):
    for title in ("one", "two", "three"):
        await upload_video(client, alice["headers"], title=title)
    await upload_video(client, bob["headers"], title="bobs")

    r = await client.get("/api/v1/videos", params={"limit": 2})
    assert r.status_code == 200
    page = r.json()
    assert page["total"] == 4
    assert [v["title"] for v in page["items"]] == ["bobs", "three"]

    r = await client.get("/api/v1/videos", params={"username": "alice", "page": 2, "limit": 2})
    page = r.json()
    assert page["total"] == 3
    assert [v["title"] for v in page["items"]] == ["one"]


@pytest.mark.asyncio
async def test_list_videos_rejects_bad_paging(client):
    assert (await client.get("/api/v1/videos", params={"page": 0})).status_code == 422
    assert (await client.get("/api/v1/videos", params={"limit": 101})).status_code == 422


@pytest.mark.asyncio
async def test_unpublished_video_visible_to_owner_only(client, alice, bob, alice_video):
    r = await client.patch(
        f"/api/v1/videos/{alice_video['id']}/publish", headers=alice["headers"]
    )
    assert r.status_code == 200
    assert r.json() == {"id": alice_video["id"], "is_published": False}

    assert (await client.get(f"/api/v1/videos/{alice_video['id']}")).status_code == 404
    r = await client.get(f"/api/v1/videos/{alice_video['id']}", headers=bob["headers"])
    assert r.status_code == 404
    r = await client.get(f"/api/v1/videos/{alice_video['id']}", headers=alice["headers"])
    assert r.status_code == 200

    listing = (await client.get("/api/v1/videos")).json()
    assert listing["total"] == 0


# ═══════════════════════════════════════════════════════════
# Ownership
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_owner_updates_video(client, alice, alice_video):
    r = await client.patch(
        f"/api/v1/videos/{alice_video['id']}",
        json={"title": "Renamed", "description": "   "},
        headers=alice["headers"],
    )
    assert r.status_code == 200
    assert r.json()["title"] == "Renamed"
    assert r.json()["description"] == alice_video["description"]


@pytest.mark.asyncio
async def test_non_owner_cannot_update_video(client, bob, alice_video):
    r = await client.patch(
        f"/api/v1/videos/{alice_video['id']}",
        json={"title": "Hijacked"},
        headers=bob["headers"],
    )
    assert r.status_code == 403
    assert r.json()["error"] == "FORBIDDEN"

    unchanged = await client.get(f"/api/v1/videos/{alice_video['id']}")
    assert unchanged.json()["title"] == alice_video["title"]


@pytest.mark.asyncio
async def test_non_owner_cannot_toggle_publish(client, bob, alice_video):
    r = await client.patch(
        f"/api/v1/videos/{alice_video['id']}/publish", headers=bob["headers"]
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_non_owner_cannot_delete_video(client, bob, alice_video, media):
    r = await client.delete(f"/api/v1/videos/{alice_video['id']}", headers=bob["headers"])
    assert r.status_code == 403
    assert media.deleted == []
    assert (await client.get(f"/api/v1/videos/{alice_video['id']}")).status_code == 200


@pytest.mark.asyncio
async def test_update_missing_video(client, alice):
    r = await client.patch(
        "/api/v1/videos/00000000-0000-0000-0000-000000000000",
        json={"title": "x"},
        headers=alice["headers"],
    )
    assert r.status_code == 404


# ═══════════════════════════════════════════════════════════
# Delete
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_delete_video_removes_row_media_and_dependents(
    client, alice, bob, alice_video, media
):
    video_id = alice_video["id"]
    await client.post(
        f"/api/v1/videos/{video_id}/comments", json={"content": "nice"}, headers=bob["headers"]
    )
    await client.post(f"/api/v1/likes/videos/{video_id}", headers=bob["headers"])
    playlist = (
        await client.post("/api/v1/playlists", json={"name": "Faves"}, headers=bob["headers"])
    ).json()
    await client.post(
        f"/api/v1/playlists/{playlist['id']}/videos/{video_id}", headers=bob["headers"]
    )

    r = await client.delete(f"/api/v1/videos/{video_id}", headers=alice["headers"])
    assert r.status_code == 200

    assert (await client.get(f"/api/v1/videos/{video_id}")).status_code == 404
    assert (await client.get(f"/api/v1/videos/{video_id}/comments")).status_code == 404
    liked = await client.get("/api/v1/likes/videos", headers=bob["headers"])
    assert liked.json() == []
    detail = await client.get(f"/api/v1/playlists/{playlist['id']}")
    assert detail.json()["videos"] == []

    thumb_id = alice_video["thumbnail"].removeprefix("https://media.test/")
    file_id = alice_video["video_file"].removeprefix("https://media.test/")
    assert sorted(media.deleted) == sorted([thumb_id, file_id])


@pytest.mark.asyncio
async def test_delete_video_succeeds_when_media_delete_fails(client, alice, alice_video, media):
    """The row is gone even if the bucket refuses to delete the objects."""
    media.fail_deletes = True
    r = await client.delete(f"/api/v1/videos/{alice_video['id']}", headers=alice["headers"])
    assert r.status_code == 200
    assert (await client.get(f"/api/v1/videos/{alice_video['id']}")).status_code == 404
