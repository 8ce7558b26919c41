import logging
from typing import Optional
from datetime import date
import redis.asyncio as redis

from ..models.redis_models import UserSessionRedis, SchoolSettingsCache

logger = logging.getLogger(__name__)

SETTINGS_CACHE_KEY = "school_settings:cache"


class RedisClient:
    """
    Redis client for cached sessions, the settings fallback copy and job markers.
    """

    def __init__(self, pool: redis.ConnectionPool):
        self._redis = redis.Redis(connection_pool=pool, decode_responses=True)

    # ===== User Session Management =====

    async def save_user_session(self, session: UserSessionRedis, ttl: int):
        key = f"users:{session.user_data.id}"
        await self._redis.set(key, session.model_dump_json(), ex=ttl)

    async def get_user_session(self, user_id: str) -> Optional[UserSessionRedis]:
        key = f"users:{user_id}"
        session_json = await self._redis.get(key)
        return UserSessionRedis.model_validate_json(session_json) if session_json else None

    async def delete_user_session(self, user_id: str) -> int:
        key = f"users:{user_id}"
        return await self._redis.delete(key)

    # ===== School settings cache =====

    async def save_settings_cache(self, cache: SchoolSettingsCache, ttl: int):
        await self._redis.set(SETTINGS_CACHE_KEY, cache.model_dump_json(), ex=ttl)

    async def get_settings_cache(self) -> Optional[SchoolSettingsCache]:
        cache_json = await self._redis.get(SETTINGS_CACHE_KEY)
        return SchoolSettingsCache.model_validate_json(cache_json) if cache_json else None

    # ===== Once-per-day job markers =====

    async def claim_daily_marker(self, job_name: str, day: date, ttl: int = 24 * 3600) -> bool:
        """
        Atomically claims the marker for ``job_name`` on ``day``.
        Only the first caller of the day gets True.
        """
        key = f"{job_name}:{day.isoformat()}"
        return bool(await self._redis.set(key, "1", nx=True, ex=ttl))

    async def release_daily_marker(self, job_name: str, day: date):
        key = f"{job_name}:{day.isoformat()}"
        await self._redis.delete(key)
