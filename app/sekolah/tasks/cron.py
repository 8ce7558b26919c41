import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..config.config import settings
from ..db.db_client import AsyncPostgresClient
from ..db.redis_client import RedisClient
from ..services.auto_alpha_service import AutoAlphaService
from ..services.no_teach_service import NoTeachService
from ..services.reminder_service import ReminderService
from ..services.settings_service import SettingsService

logger = logging.getLogger(__name__)


async def mark_teachers_not_teaching_task(db_client: AsyncPostgresClient, redis_client: RedisClient):
    """
    Periodic no-show detection. Failures are logged; the next tick is the retry.
    """
    try:
        service = NoTeachService(db_client, SettingsService(db_client, redis_client))
        result = await service.mark_teachers_not_teaching()
        logger.info(f"mark_teachers_not_teaching: {result.message}")
    except Exception as e:
        logger.error(f"mark_teachers_not_teaching failed: {e}", exc_info=True)


async def attendance_reminder_task(db_client: AsyncPostgresClient, redis_client: RedisClient):
    try:
        service = ReminderService(db_client, redis_client, SettingsService(db_client, redis_client))
        result = await service.send_attendance_reminders()
        logger.info(f"attendance_reminder: {result.message}")
    except Exception as e:
        logger.error(f"attendance_reminder failed: {e}", exc_info=True)


async def auto_alpha_task(db_client: AsyncPostgresClient, redis_client: RedisClient):
    try:
        service = AutoAlphaService(db_client, SettingsService(db_client, redis_client))
        result = await service.mark_absent_as_alpha()
        logger.info(f"auto_alpha_attendance: {result.message}")
    except Exception as e:
        logger.error(f"auto_alpha_attendance failed: {e}", exc_info=True)


def register_jobs(scheduler: AsyncIOScheduler, db_client: AsyncPostgresClient, redis_client: RedisClient):
    """Adds the periodic reconciliation jobs to ``scheduler``."""
    scheduler.add_job(
        mark_teachers_not_teaching_task, "interval", minutes=settings.NO_TEACH_INTERVAL_MINUTES,
        args=[db_client, redis_client], id="mark_teachers_not_teaching", max_instances=1, coalesce=True
    )
    scheduler.add_job(
        attendance_reminder_task, "interval", minutes=settings.REMINDER_INTERVAL_MINUTES,
        args=[db_client, redis_client], id="attendance_reminder", max_instances=1, coalesce=True
    )
    if settings.AUTO_ALPHA_ENABLED:
        scheduler.add_job(
            auto_alpha_task, "interval", minutes=settings.AUTO_ALPHA_INTERVAL_MINUTES,
            args=[db_client, redis_client], id="auto_alpha_attendance", max_instances=1, coalesce=True
        )
