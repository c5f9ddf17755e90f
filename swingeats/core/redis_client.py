"""
SwingEats — Redis access

Redis only holds replay records for order placement. The client is created on
first use, and every key lives under the service's namespace.
"""
import asyncio
import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from swingeats.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

_client: aioredis.Redis | None = None


def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        _client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
            socket_timeout=settings.HEALTH_CHECK_TIMEOUT,
        )
        logger.info("Redis client created for %s:%s", settings.REDIS_HOST, settings.REDIS_PORT)
    return _client


def redis_key(*parts: str) -> str:
    """``redis_key("idempotency", "abc")`` → ``"swingeats:idempotency:abc"``"""
    return ":".join((settings.SERVICE_NAME, *parts))


async def redis_status() -> str:
    try:
        await asyncio.wait_for(get_redis().ping(), timeout=settings.HEALTH_CHECK_TIMEOUT)
    except (RedisError, OSError, asyncio.TimeoutError) as exc:
        return f"degraded: {str(exc)[:100]}"
    return "ok"


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
