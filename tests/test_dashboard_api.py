"""Channel dashboard tests."""

import pytest

from conftest import make_user, upload_video


@pytest.mark.asyncio
async def test_channel_stats(client, alice, bob):
    carol = await make_user(client, "carol")
    v1 = (await upload_video(client, alice["headers"], title="one")).json()
    v2 = (await upload_video(client, alice["headers"], title="two")).json()
    await upload_video(client, bob["headers"], title="bobs")

    for fan in (bob, carol):
        await client.post(f"/api/v1/likes/videos/{v1['id']}", headers=fan["headers"])
        await client.post(f"/api/v1/subscriptions/channels/{alice['id']}", headers=fan["headers"])
    await client.post(f"/api/v1/likes/videos/{v2['id']}", headers=bob["headers"])

    r = await client.get(f"/api/v1/dashboard/channels/{alice['id']}/stats")
    assert r.status_code == 200
    assert r.json() == {
        "channel_id": alice["id"],
        "total_videos": 2,
        "total_views": 0,
        "total_likes": 3,
        "total_subscribers": 2,
    }


@pytest.mark.asyncio
async def test_stats_for_empty_channel(client, alice):
    r = await client.get(f"/api/v1/dashboard/channels/{alice['id']}/stats")
    assert r.json()["total_videos"] == 0
    assert r.json()["total_views"] == 0


@pytest.mark.asyncio
async def test_stats_for_unknown_channel(client):
    r = await client.get(
        "/api/v1/dashboard/channels/00000000-0000-0000-0000-000000000000/stats"
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_channel_videos_hide_drafts_from_others(client, alice, bob):
    await upload_video(client, alice["headers"], title="public")
    draft = (await upload_video(client, alice["headers"], title="draft")).json()
    await client.patch(f"/api/v1/videos/{draft['id']}/publish", headers=alice["headers"])

    url = f"/api/v1/dashboard/channels/{alice['id']}/videos"
    own = await client.get(url, headers=alice["headers"])
    assert [v["title"] for v in own.json()] == ["draft", "public"]

    others = await client.get(url, headers=bob["headers"])
    assert [v["title"] for v in others.json()] == ["public"]
