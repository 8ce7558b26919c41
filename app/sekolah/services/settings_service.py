import logging
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel

from ..config.config import settings
from ..db.db_client import AsyncPostgresClient
from ..db.redis_client import RedisClient
from ..models.db_models import SchoolSettings
from ..models.redis_models import SchoolSettingsCache
from .errors import ServiceError

logger = logging.getLogger(__name__)

DEFAULT_SCHOOL_SETTINGS = SchoolSettings()


class ResolvedSettings(BaseModel):
    """School settings together with the layer they were resolved from."""
    settings: SchoolSettings
    source: Literal["remote", "cache", "default"]


class SettingsService:
    """
    Resolves school settings through an explicit precedence chain:
    database row -> last good copy in Redis -> built-in defaults.
    """
    def __init__(self, db_client: AsyncPostgresClient, redis_client: RedisClient):
        self.db_client = db_client
        self.redis_client = redis_client

    async def _read_cache(self):
        try:
            cached = await self.redis_client.get_settings_cache()
        except Exception:
            logger.error("Could not read cached school settings from Redis.", exc_info=True)
            return None
        return cached.settings if cached else None

    async def _write_cache(self, school_settings: SchoolSettings):
        try:
            cache = SchoolSettingsCache(settings=school_settings, cached_at=datetime.now(timezone.utc))
            await self.redis_client.save_settings_cache(cache, ttl=settings.SETTINGS_CACHE_TTL_SECONDS)
        except Exception:
            logger.warning("Could not refresh cached school settings in Redis.", exc_info=True)

    async def resolve(self) -> ResolvedSettings:
        try:
            remote = await self.db_client.get_school_settings()
        except Exception:
            logger.error("Error fetching school settings, falling back to cache.", exc_info=True)
            remote = None
        else:
            if remote:
                await self._write_cache(remote)
                return ResolvedSettings(settings=remote, source="remote")
            logger.info("No school settings row found.")

        cached = await self._read_cache()
        if cached:
            return ResolvedSettings(settings=cached, source="cache")

        logger.info("Using default school settings.")
        return ResolvedSettings(settings=DEFAULT_SCHOOL_SETTINGS.model_copy(), source="default")

    async def get_settings(self) -> SchoolSettings:
        return (await self.resolve()).settings

    async def update_settings(self, new_settings: SchoolSettings) -> SchoolSettings:
        try:
            await self.db_client.save_school_settings(new_settings)
        except Exception as e:
            logger.error("Error saving school settings.", exc_info=True)
            raise ServiceError("A database error occurred while saving school settings.") from e
        await self._write_cache(new_settings)
        logger.info("School settings updated.")
        return new_settings
