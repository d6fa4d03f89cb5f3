"""Redis connection: backs the per-IP rate limiter.

Redis is optional: if it cannot be reached at startup the app keeps
running with app.state.redis = None and the rate limiter lets every
request through.
"""

from typing import Optional

import redis.asyncio as aioredis
import structlog

logger = structlog.get_logger()


async def connect_redis(url: str) -> Optional[aioredis.Redis]:
    """Open a connection pool and verify it, or return None if unreachable."""
    client = aioredis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await client.ping()
    except Exception as e:
        logger.warning("vidtube.redis_unavailable", error=str(e))
        await client.aclose()
        return None
    logger.info("vidtube.redis_connected", url=url)
    return client


async def close_redis(client: Optional[aioredis.Redis]) -> None:
    if client is not None:
        await client.aclose()

