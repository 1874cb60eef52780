"""Optional Redis connection for the status cache.

Without ``REDIS_URL``, or when Redis is unreachable at startup, the service
runs uncached: ``get_redis()`` returns None and ``StatusCache`` does nothing.
"""

from redis.asyncio import Redis
from redis.exceptions import RedisError

from daily_checkin.config import get_settings
from daily_checkin.logging_config import get_logger

logger = get_logger(__name__)

_client: Redis | None = None


async def init_redis() -> Redis | None:
    global _client

    url = get_settings().redis_url
    if not url:
        return None

    client = Redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=2.0,
        socket_connect_timeout=2.0,
        health_check_interval=30,
    )
    try:
        await client.ping()
    except RedisError as e:
        logger.warning("redis_unavailable", error=str(e))
        await client.aclose()
        return None

    _client = client
    return client


async def redis_health() -> str:
    """``disabled``, ``healthy`` or ``unhealthy``."""
    if _client is None:
        return "disabled"
    try:
        await _client.ping()
    except RedisError as e:
        logger.warning("redis_health_check_failed", error=str(e))
        return "unhealthy"
    return "healthy"


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> Redis | None:
    return _client
