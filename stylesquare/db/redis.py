from __future__ import annotations

import logging

from redis.asyncio import Redis

from stylesquare.core.config import settings

logger = logging.getLogger(__name__)

# Shared by notification publishing, the websocket relay and the rate limiter.
redis_client: Redis = Redis.from_url(settings.redis_url, decode_responses=True)


async def close_redis() -> None:
    try:
        await redis_client.aclose()
    except Exception:
        logger.warning("Redis client did not close cleanly", exc_info=True)
