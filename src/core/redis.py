"""Redis client for the access-decision cache.

Redis is optional: when disabled or unreachable the application runs
without it and every access check goes to the store. The client lives
on the AppContext; nothing here keeps module state.
"""

import redis.asyncio as redis

from src.config.settings import Settings
from src.core.logging import get_logger


logger = get_logger(__name__)


async def connect_redis(settings: Settings) -> redis.Redis:
    """Create a client and make sure the server answers.

    Raises:
        redis.RedisError: If the server cannot be reached
    """
    client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        decode_responses=True,
    )
    try:
        await client.ping()
    except redis.RedisError:
        await client.aclose()
        raise

    logger.info("redis_connected", url=settings.redis_url)
    return client


async def close_redis(client: redis.Redis | None) -> None:
    if client is not None:
        await client.aclose()
        logger.info("redis_disconnected")


def access_cache_key(user_id: object, course_id: str) -> str:
    """Cache key of the access decision for a user/course pair."""
    return f"access:{user_id}:{course_id}"
