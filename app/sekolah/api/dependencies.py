#app/sekolah/api/dependencies.py
from fastapi import Request, Depends
import redis.asyncio as redis
import asyncpg

from ..db.redis_client import RedisClient
from ..db.db_client import AsyncPostgresClient
from ..services.settings_service import SettingsService
from ..services.calendar_service import CalendarService
from ..services.leave_service import LeaveService
from ..services.no_teach_service import NoTeachService
from ..services.reminder_service import ReminderService
from ..services.auto_alpha_service import AutoAlphaService


def get_redis_pool(request: Request) -> redis.ConnectionPool:
    """
    Returns the Redis connection pool created in the application lifespan.
    """
    return request.app.state.redis_pool

def get_postgres_pool(request: Request) -> asyncpg.Pool:
    """
    Returns the PostgreSQL connection pool created in the application lifespan.
    """
    return request.app.state.postgres_pool


def get_db_client(postgres_pool: asyncpg.Pool = Depends(get_postgres_pool)) -> AsyncPostgresClient:
    return AsyncPostgresClient(pool=postgres_pool)

def get_redis_client(redis_pool: redis.ConnectionPool = Depends(get_redis_pool)) -> RedisClient:
    return RedisClient(pool=redis_pool)


def get_settings_service(
    db_client: AsyncPostgresClient = Depends(get_db_client),
    redis_client: RedisClient = Depends(get_redis_client)
) -> SettingsService:
    """
    Builds a fresh SettingsService per request on top of the shared pools.
    """
    return SettingsService(db_client=db_client, redis_client=redis_client)

def get_calendar_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> CalendarService:
    return CalendarService(db_client=db_client)

def get_leave_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> LeaveService:
    return LeaveService(db_client=db_client)

def get_no_teach_service(
    db_client: AsyncPostgresClient = Depends(get_db_client),
    settings_service: SettingsService = Depends(get_settings_service)
) -> NoTeachService:
    return NoTeachService(db_client=db_client, settings_service=settings_service)

def get_reminder_service(
    db_client: AsyncPostgresClient = Depends(get_db_client),
    redis_client: RedisClient = Depends(get_redis_client),
    settings_service: SettingsService = Depends(get_settings_service)
) -> ReminderService:
    return ReminderService(db_client=db_client, redis_client=redis_client, settings_service=settings_service)

def get_auto_alpha_service(
    db_client: AsyncPostgresClient = Depends(get_db_client),
    settings_service: SettingsService = Depends(get_settings_service)
) -> AutoAlphaService:
    return AutoAlphaService(db_client=db_client, settings_service=settings_service)
