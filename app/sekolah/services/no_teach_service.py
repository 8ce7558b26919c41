import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..core.wib import format_hhmm, now_wib, wib_date, wib_day_bounds, wib_time_hm, wib_weekday_name
from ..db.db_client import AsyncPostgresClient
from ..models.db_models import NoTeachRecord
from .calendar_service import CalendarService
from .settings_service import SettingsService

logger = logging.getLogger(__name__)

NO_TEACH_REASON = "Tidak memulai sesi mengajar"


class NoTeachResult(BaseModel):
    message: str
    date: Optional[str] = None
    day: Optional[str] = None
    time: Optional[str] = None
    check_out_time: Optional[str] = None
    schedules_checked: int = 0
    marked: int = 0
    skipped: bool = False


class NoTeachService:
    """
    Records scheduled lessons that were never started once the school day is over.
    """
    def __init__(self, db_client: AsyncPostgresClient, settings_service: SettingsService):
        self.db_client = db_client
        self.settings_service = settings_service
        self.calendar = CalendarService(db_client)

    async def mark_teachers_not_teaching(self, now: Optional[datetime] = None) -> NoTeachResult:
        now = now or now_wib()
        today = wib_date(now)
        current_time = wib_time_hm(now)
        day_name = wib_weekday_name(today)
        logger.info(f"Checking teachers for {day_name}, {today.isoformat()} at {current_time} WIB")

        reason = await self.calendar.non_workday_reason(today)
        if reason:
            logger.info(reason)
            return NoTeachResult(message=reason, date=today.isoformat(), day=day_name, time=current_time, skipped=True)

        school_settings = await self.settings_service.get_settings()
        check_out_time = format_hhmm(school_settings.check_out_time)

        # Lessons still running before checkout must not be flagged.
        if current_time < check_out_time:
            message = f"Not yet past check_out_time ({check_out_time}), current time: {current_time}"
            logger.info(message)
            return NoTeachResult(
                message=message, date=today.isoformat(), day=day_name, time=current_time,
                check_out_time=check_out_time, skipped=True
            )

        approved_leaves = await self.db_client.get_approved_leaves_on(today)
        teachers_on_leave = {leave.teacher_id for leave in approved_leaves}

        schedules = await self.db_client.get_schedules_for_day(day_name)
        logger.info(f"Found {len(schedules)} schedules for today")

        day_start, day_end = wib_day_bounds(today)
        marked = 0
        for schedule in schedules:
            if schedule.teacher_id in teachers_on_leave:
                logger.info(f"Teacher {schedule.teacher_id} is on approved leave, skipping")
                continue

            if format_hhmm(schedule.end_time) > current_time:
                continue

            if await self.db_client.has_teaching_session(schedule.id, day_start, day_end):
                continue

            try:
                created = await self.db_client.insert_no_teach_record(NoTeachRecord(
                    teacher_id=schedule.teacher_id,
                    schedule_id=schedule.id,
                    date=today,
                    class_id=schedule.class_id,
                    subject_id=schedule.subject_id,
                    reason=NO_TEACH_REASON,
                ))
            except Exception:
                logger.error(f"Error inserting no-teach record for schedule {schedule.id}", exc_info=True)
                continue

            if created:
                marked += 1
                logger.info(f"Marked teacher {schedule.teacher_id} as not teaching for schedule {schedule.id}")

        logger.info(f"Marked {marked} teachers as not teaching")
        return NoTeachResult(
            message=f"Checked {len(schedules)} schedules, marked {marked} as not teaching",
            date=today.isoformat(),
            day=day_name,
            time=current_time,
            check_out_time=check_out_time,
            schedules_checked=len(schedules),
            marked=marked,
        )
