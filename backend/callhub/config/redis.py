"""
Presence mirror client

One lazily created client per process, handed to StatusService as its
`redis_getter`. Only the mirror uses Redis; nothing reads presence back.
"""
import logging
from typing import Optional

import redis.asyncio as redis

from callhub.config.settings import settings

logger = logging.getLogger(__name__)

_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    global _client
    if _client is None:
        _client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
        logger.info(f"[Presence] Mirror client for {settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}")
    return _client


async def close_redis() -> None:
    global _client
    if _client is None:
        return
    await _client.aclose()
    _client = None
