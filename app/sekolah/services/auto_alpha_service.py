import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..core.wib import format_hhmm, now_wib, wib_date, wib_time_hm, wib_weekday_name
from ..db.db_client import AsyncPostgresClient
from ..models.db_models import (
    AttendanceOrigin,
    AttendanceRecord,
    AttendanceStatus,
    Role,
    StudentAttendanceRecord,
)
from .calendar_service import CalendarService
from .settings_service import SettingsService

logger = logging.getLogger(__name__)

STUDENT_ALPHA_NOTE = "Otomatis ditandai alpha"


class AutoAlphaResult(BaseModel):
    message: str
    date: Optional[str] = None
    time: Optional[str] = None
    check_out_time: Optional[str] = None
    teachers_marked: int = 0
    teachers_skipped: int = 0
    students_marked: int = 0
    skipped: bool = False


class AutoAlphaService:
    """
    After checkout, fills in the day's missing attendance rows.

    Teachers on approved leave get their leave type, teachers with lessons
    today and all staff get 'alpha'. Rows that already exist are never touched.
    """
    def __init__(self, db_client: AsyncPostgresClient, settings_service: SettingsService):
        self.db_client = db_client
        self.settings_service = settings_service
        self.calendar = CalendarService(db_client)

    async def mark_absent_as_alpha(self, now: Optional[datetime] = None) -> AutoAlphaResult:
        now = now or now_wib()
        today = wib_date(now)
        current_time = wib_time_hm(now)
        logger.info(f"Running auto-alpha attendance for {today.isoformat()} at {current_time} WIB")

        reason = await self.calendar.non_workday_reason(today)
        if reason:
            logger.info(reason)
            return AutoAlphaResult(message=reason, date=today.isoformat(), time=current_time, skipped=True)

        school_settings = await self.settings_service.get_settings()
        check_out_time = format_hhmm(school_settings.check_out_time)
        if current_time < check_out_time:
            message = f"Not yet past check_out_time ({check_out_time}), current time: {current_time}"
            logger.info(message)
            return AutoAlphaResult(
                message=message, date=today.isoformat(), time=current_time,
                check_out_time=check_out_time, skipped=True
            )

        leave_types = {leave.teacher_id: leave.request_type for leave in await self.db_client.get_approved_leaves_on(today)}
        teachers_with_schedule = await self.db_client.get_teacher_ids_with_schedule(wib_weekday_name(today))
        already_recorded = await self.db_client.get_attendance_user_ids(today)

        teachers_marked = 0
        teachers_skipped = 0
        profiles = await self.db_client.get_profiles_by_roles([Role.TEACHER.value, Role.STAFF.value])
        for profile in profiles:
            if profile.id in already_recorded:
                continue

            leave_type = leave_types.get(profile.id)
            if leave_type:
                record = AttendanceRecord(
                    user_id=profile.id, date=today,
                    status=AttendanceStatus(leave_type.value), type=AttendanceOrigin.PERMISSION
                )
            elif profile.role == Role.TEACHER.value:
                if profile.can_teach is False:
                    continue
                if profile.id not in teachers_with_schedule:
                    logger.info(f"{profile.full_name} has no schedule today, skipping alpha")
                    teachers_skipped += 1
                    continue
                record = AttendanceRecord(user_id=profile.id, date=today, status=AttendanceStatus.ALPHA, type=AttendanceOrigin.AUTO)
            else:
                # Staff are expected every workday.
                record = AttendanceRecord(user_id=profile.id, date=today, status=AttendanceStatus.ALPHA, type=AttendanceOrigin.AUTO)

            try:
                if await self.db_client.insert_attendance_if_absent(record):
                    teachers_marked += 1
                    logger.info(f"Marked {profile.full_name} as {record.status.value}")
            except Exception:
                logger.error(f"Error marking {profile.full_name} as {record.status.value}", exc_info=True)

        students_marked = 0
        for student in await self.db_client.get_students_with_class():
            try:
                created = await self.db_client.insert_student_attendance_if_absent(StudentAttendanceRecord(
                    student_id=student.id, class_id=student.class_id, date=today,
                    status=AttendanceStatus.ALPHA, notes=STUDENT_ALPHA_NOTE
                ))
            except Exception:
                logger.error(f"Error marking student {student.name} as alpha", exc_info=True)
                continue
            if created:
                students_marked += 1

        logger.info(
            f"Completed: {teachers_marked} teachers/staff marked, {teachers_skipped} teachers skipped (no schedule), "
            f"{students_marked} students marked"
        )
        return AutoAlphaResult(
            message="Auto-alpha completed",
            date=today.isoformat(),
            time=current_time,
            check_out_time=check_out_time,
            teachers_marked=teachers_marked,
            teachers_skipped=teachers_skipped,
            students_marked=students_marked,
        )
