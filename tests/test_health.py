"""Health endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status and version."""
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert data["version"] == "0.1.0"
    assert data["database"] == "ok"


@pytest.mark.asyncio
async def test_health_without_redis_is_still_healthy(client):
    """Redis is optional; running without it is reported, not degraded."""
    data = (await client.get("/api/v1/health")).json()
    assert data["redis"] == "disabled"
    assert data["media_store"] == "ok"
    assert data["status"] == "healthy"
