import logging
from datetime import datetime
from typing import Callable, Optional

from pydantic import BaseModel

from ..core.wib import format_hhmm, minutes_until, now_wib, wib_date, wib_time_hm
from ..db.db_client import AsyncPostgresClient
from ..db.redis_client import RedisClient
from ..models.db_models import Role
from ..tools.push_dispatcher import PushDispatcher, PushNotification
from .calendar_service import CalendarService
from .settings_service import SettingsService

logger = logging.getLogger(__name__)

REMINDER_WINDOW_MIN_MINUTES = 5
REMINDER_WINDOW_MAX_MINUTES = 15
REMINDER_MARKER = "attendance_reminder"


class ReminderResult(BaseModel):
    message: str
    current_time: Optional[str] = None
    late_time: Optional[str] = None
    minutes_before: Optional[int] = None
    teachers_not_attended: int = 0
    subscriptions_found: int = 0
    sent: int = 0
    failed: int = 0
    # Per-device counts reported by the dispatch service.
    deliveries_sent: int = 0
    deliveries_failed: int = 0
    skipped: bool = False


def in_reminder_window(minutes_before: int) -> bool:
    return REMINDER_WINDOW_MIN_MINUTES <= minutes_before <= REMINDER_WINDOW_MAX_MINUTES


class ReminderService:
    """
    Pushes a check-in reminder to teachers and staff shortly before the late cutoff.
    """
    def __init__(
        self,
        db_client: AsyncPostgresClient,
        redis_client: RedisClient,
        settings_service: SettingsService,
        dispatcher_factory: Callable[[], PushDispatcher] = PushDispatcher.from_settings,
    ):
        self.db_client = db_client
        self.redis_client = redis_client
        self.settings_service = settings_service
        self.calendar = CalendarService(db_client)
        self.dispatcher_factory = dispatcher_factory

    async def send_attendance_reminders(self, now: Optional[datetime] = None) -> ReminderResult:
        logger.info("Starting attendance reminder check...")
        now = now or now_wib()
        today = wib_date(now)
        current_time = wib_time_hm(now)

        school_settings = await self.settings_service.get_settings()
        late_time = format_hhmm(school_settings.late_time)
        minutes_before = minutes_until(late_time, current_time)
        logger.info(f"Current time: {current_time}, Late time: {late_time}, Minutes before: {minutes_before}")

        if not in_reminder_window(minutes_before):
            return ReminderResult(
                message="Not in reminder window", current_time=current_time,
                late_time=late_time, minutes_before=minutes_before, skipped=True
            )

        reason = await self.calendar.non_workday_reason(today)
        if reason:
            logger.info(reason)
            return ReminderResult(message=reason, current_time=current_time, late_time=late_time, skipped=True)

        if not await self.redis_client.claim_daily_marker(REMINDER_MARKER, today):
            logger.info(f"Attendance reminder already sent for {today.isoformat()}, skipping")
            return ReminderResult(
                message="Reminder already sent today", current_time=current_time,
                late_time=late_time, minutes_before=minutes_before, skipped=True
            )

        try:
            return await self._dispatch(today, current_time, late_time, minutes_before, school_settings.school_name)
        except Exception:
            # Let the next tick inside the window try again.
            await self.redis_client.release_daily_marker(REMINDER_MARKER, today)
            raise

    async def _dispatch(self, today, current_time: str, late_time: str, minutes_before: int, school_name: str) -> ReminderResult:
        profiles = await self.db_client.get_profiles_by_roles([Role.TEACHER.value, Role.STAFF.value])
        attended_user_ids = await self.db_client.get_attendance_user_ids(today)
        not_attended = [profile for profile in profiles if profile.id not in attended_user_ids]
        logger.info(f"Found {len(not_attended)} teachers who haven't checked in")

        if not not_attended:
            return ReminderResult(message="All teachers have checked in", current_time=current_time, late_time=late_time, minutes_before=minutes_before)

        subscriptions = await self.db_client.get_push_subscriptions([profile.id for profile in not_attended])
        if not subscriptions:
            logger.info("No push subscriptions found for these teachers")
            return ReminderResult(
                message="No push subscriptions found", current_time=current_time, late_time=late_time,
                minutes_before=minutes_before, teachers_not_attended=len(not_attended)
            )

        dispatcher = self.dispatcher_factory()
        notification = PushNotification(
            title=f"⏰ Pengingat Absensi - {school_name}",
            body=f"Jangan lupa absen! Batas waktu: {late_time}. Anda belum melakukan absensi hari ini.",
            tag="attendance-reminder",
            url="/absensi",
        )

        sent = 0
        failed = 0
        deliveries_sent = 0
        deliveries_failed = 0
        # One call per user; the dispatch service fans out to all of that user's devices.
        recipients = list(dict.fromkeys(subscription.user_id for subscription in subscriptions))
        for user_id in recipients:
            try:
                delivery = await dispatcher.send(notification, [user_id])
                sent += 1
                deliveries_sent += delivery.sent
                deliveries_failed += delivery.failed
            except Exception as e:
                logger.error(f"Failed to send reminder to {user_id}: {e}")
                failed += 1

        logger.info(f"Sent {sent} reminders, {failed} failed ({deliveries_sent} devices reached, {deliveries_failed} device deliveries failed)")
        return ReminderResult(
            message=f"Sent {sent} reminders, {failed} failed",
            current_time=current_time,
            late_time=late_time,
            minutes_before=minutes_before,
            teachers_not_attended=len(not_attended),
            subscriptions_found=len(subscriptions),
            sent=sent,
            failed=failed,
            deliveries_sent=deliveries_sent,
            deliveries_failed=deliveries_failed,
        )
