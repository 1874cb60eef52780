"""Redis read cache for check-in status."""

from datetime import date
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from daily_checkin.logging_config import get_logger
from daily_checkin.middleware.prometheus import record_cache_access
from daily_checkin.utils.json_utils import json_dumps, json_loads

logger = get_logger(__name__)


class StatusCache:
    """Caches the ``/checkin/status`` projection per user and day.

    The database stays authoritative: Redis errors are logged and treated
    as misses. Without a client every call is a no-op. Projections taken
    before today's check-in use the shorter ``unchecked_ttl``, since a
    concurrent check-in may invalidate before they are written.
    """

    KEY_PREFIX = "checkin:status:"

    def __init__(self, redis: Redis | None, ttl: int = 300, unchecked_ttl: int = 30):
        self.redis = redis
        self.ttl = ttl
        self.unchecked_ttl = min(unchecked_ttl, ttl)

    @classmethod
    def key(cls, user_id: str, day: date) -> str:
        return f"{cls.KEY_PREFIX}{user_id}:{day.isoformat()}"

    async def get(self, user_id: str, day: date) -> dict[str, Any] | None:
        if self.redis is None:
            return None
        try:
            raw = await self.redis.get(self.key(user_id, day))
        except RedisError as e:
            logger.warning("status_cache_read_failed", user_id=user_id, error=str(e))
            return None
        record_cache_access("checkin_status", raw is not None)
        if raw is None:
            return None
        return json_loads(raw)

    async def set(
        self,
        user_id: str,
        day: date,
        status: dict[str, Any],
        ttl: int | None = None,
    ) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.setex(self.key(user_id, day), ttl or self.ttl, json_dumps(status))
        except RedisError as e:
            logger.warning("status_cache_write_failed", user_id=user_id, error=str(e))

    async def invalidate(self, user_id: str, day: date) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.delete(self.key(user_id, day))
        except RedisError as e:
            logger.warning("status_cache_invalidate_failed", user_id=user_id, error=str(e))
