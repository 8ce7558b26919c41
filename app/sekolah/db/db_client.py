import logging
from typing import Iterable, List, Optional, Set
from uuid import UUID
import asyncpg
from datetime import date, datetime, timezone
from enum import Enum

from ..core.wib import format_hhmm, parse_hhmm
from ..models.db_models import (
    AttendanceRecord,
    Holiday,
    LeaveRequest,
    LeaveStatus,
    NoTeachRecord,
    Profile,
    PushSubscription,
    Schedule,
    SchoolSettings,
    Student,
    StudentAttendanceRecord,
)

logger = logging.getLogger(__name__)


def _affected_rows(status: str) -> int:
    """Row count from an asyncpg command tag such as 'INSERT 0 1' or 'UPDATE 3'."""
    try:
        return int(str(status).split()[-1])
    except (ValueError, IndexError):
        return 0


def _enum_value(member: Optional[Enum]) -> Optional[str]:
    return member.value if member is not None else None


class AsyncPostgresClient:
    """
    PostgreSQL client that owns every query the service runs.
    """
    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ===== School settings =====

    async def get_school_settings(self) -> Optional[SchoolSettings]:
        """Returns the single settings row, or None when the table is empty."""
        query = "SELECT * FROM school_settings ORDER BY created_at LIMIT 1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query)
        if not record:
            return None
        defaults = SchoolSettings()
        return SchoolSettings(
            school_name=record["school_name"] or defaults.school_name,
            school_address=record["school_address"] or "",
            school_phone=record["school_phone"] or "",
            school_icon_url=record["school_icon_url"] or "",
            check_in_time=format_hhmm(record["check_in_time"]) if record["check_in_time"] else defaults.check_in_time,
            late_time=format_hhmm(record["late_time"]) if record["late_time"] else defaults.late_time,
            check_out_time=format_hhmm(record["check_out_time"]) if record["check_out_time"] else defaults.check_out_time,
        )

    async def save_school_settings(self, school_settings: SchoolSettings):
        """Updates the settings row, creating it when none exists yet."""
        values = (
            school_settings.school_name, school_settings.school_address,
            school_settings.school_phone, school_settings.school_icon_url,
            parse_hhmm(school_settings.check_in_time), parse_hhmm(school_settings.late_time),
            parse_hhmm(school_settings.check_out_time),
        )
        update_query = """
            UPDATE school_settings
            SET school_name = $1, school_address = $2, school_phone = $3, school_icon_url = $4,
                check_in_time = $5, late_time = $6, check_out_time = $7, updated_at = now()
            WHERE id = (SELECT id FROM school_settings ORDER BY created_at LIMIT 1);
        """
        insert_query = """
            INSERT INTO school_settings
                (school_name, school_address, school_phone, school_icon_url, check_in_time, late_time, check_out_time)
            VALUES ($1, $2, $3, $4, $5, $6, $7);
        """
        async with self._pool.acquire() as connection:
            async with connection.transaction():
                status = await connection.execute(update_query, *values)
                if _affected_rows(status) == 0:
                    await connection.execute(insert_query, *values)

    # ===== Holidays =====

    async def get_holiday(self, day: date) -> Optional[Holiday]:
        query = "SELECT id, date, name, description FROM holidays WHERE date = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, day)
            return Holiday(**record) if record else None

    async def get_holidays(self, start: Optional[date] = None, end: Optional[date] = None) -> List[Holiday]:
        """Holidays ordered by date, optionally bounded (inclusive) on either side."""
        query = """
            SELECT id, date, name, description FROM holidays
            WHERE ($1::date IS NULL OR date >= $1) AND ($2::date IS NULL OR date <= $2)
            ORDER BY date;
        """
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, start, end)
            return [Holiday(**record) for record in records]

    async def add_holiday(self, day: date, name: str, description: Optional[str] = None) -> Optional[Holiday]:
        """Inserts a holiday. Returns None when the date is already listed."""
        query = """
            INSERT INTO holidays (date, name, description)
            VALUES ($1, $2, $3)
            ON CONFLICT (date) DO NOTHING
            RETURNING id, date, name, description;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, day, name, description)
            return Holiday(**record) if record else None

    async def delete_holiday(self, holiday_id: UUID) -> int:
        query = "DELETE FROM holidays WHERE id = $1;"
        async with self._pool.acquire() as connection:
            return _affected_rows(await connection.execute(query, holiday_id))

    # ===== Profiles =====

    async def get_profile(self, profile_id: UUID) -> Optional[Profile]:
        query = "SELECT id, full_name, email, nip, role, can_teach FROM profiles WHERE id = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, profile_id)
            return Profile(**record) if record else None

    async def get_profiles_by_roles(self, roles: Iterable[str]) -> List[Profile]:
        query = "SELECT id, full_name, email, nip, role, can_teach FROM profiles WHERE role = ANY($1);"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, list(roles))
            return [Profile(**record) for record in records]

    async def set_can_teach(self, teacher_id: UUID, can_teach: bool):
        query = "UPDATE profiles SET can_teach = $2, updated_at = now() WHERE id = $1;"
        async with self._pool.acquire() as connection:
            return await connection.execute(query, teacher_id, can_teach)

    # ===== Schedules & teaching sessions =====

    async def get_schedules_for_day(self, day_name: str) -> List[Schedule]:
        query = """
            SELECT id, day, start_time, end_time, teacher_id, class_id, subject_id
            FROM schedules WHERE day = $1 ORDER BY start_time;
        """
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, day_name)
            return [Schedule(**record) for record in records]

    async def get_teacher_ids_with_schedule(self, day_name: str) -> Set[UUID]:
        query = "SELECT DISTINCT teacher_id FROM schedules WHERE day = $1;"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, day_name)
            return {record["teacher_id"] for record in records}

    async def has_teaching_session(self, schedule_id: UUID, start: datetime, end: datetime) -> bool:
        """True when a session for the schedule was created in [start, end)."""
        query = """
            SELECT EXISTS (
                SELECT 1 FROM teaching_sessions
                WHERE schedule_id = $1 AND created_at >= $2 AND created_at < $3
            );
        """
        async with self._pool.acquire() as connection:
            return await connection.fetchval(query, schedule_id, start, end)

    # ===== Leave requests =====

    async def add_leave_request(self, teacher_id: UUID, request_type: str, start_date: date, end_date: date, reason: str) -> LeaveRequest:
        query = """
            INSERT INTO teacher_leave_requests (teacher_id, request_type, start_date, end_date, reason)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, teacher_id, request_type, start_date, end_date, reason)
            return LeaveRequest(**record)

    async def get_leave_request(self, request_id: UUID) -> Optional[LeaveRequest]:
        query = "SELECT * FROM teacher_leave_requests WHERE id = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, request_id)
            return LeaveRequest(**record) if record else None

    async def get_leave_requests(self, status: Optional[str] = None, teacher_id: Optional[UUID] = None) -> List[LeaveRequest]:
        query = """
            SELECT * FROM teacher_leave_requests
            WHERE ($1::text IS NULL OR status = $1) AND ($2::uuid IS NULL OR teacher_id = $2)
            ORDER BY created_at DESC;
        """
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, status, teacher_id)
            return [LeaveRequest(**record) for record in records]

    async def decide_leave_request(self, request_id: UUID, status: LeaveStatus, approver_id: UUID, rejection_reason: Optional[str] = None) -> Optional[LeaveRequest]:
        """
        Moves a pending request to approved/rejected. Returns None when the request
        does not exist or was already decided.
        """
        query = """
            UPDATE teacher_leave_requests
            SET status = $2, approved_by = $3, approved_at = $4, rejection_reason = $5, updated_at = now()
            WHERE id = $1 AND status = 'pending'
            RETURNING *;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(
                query, request_id, status.value, approver_id, datetime.now(timezone.utc), rejection_reason
            )
            return LeaveRequest(**record) if record else None

    async def get_approved_leaves_on(self, day: date) -> List[LeaveRequest]:
        """Approved leave requests whose date range covers ``day``."""
        query = """
            SELECT * FROM teacher_leave_requests
            WHERE status = 'approved' AND start_date <= $1 AND end_date >= $1;
        """
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, day)
            return [LeaveRequest(**record) for record in records]

    # ===== Attendance =====

    async def upsert_attendance(self, record: AttendanceRecord):
        """Inserts or overwrites the (user_id, date) row; last write wins on status and type."""
        query = """
            INSERT INTO attendance (user_id, date, status, type)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (user_id, date) DO UPDATE SET
                status = EXCLUDED.status,
                type = EXCLUDED.type;
        """
        async with self._pool.acquire() as connection:
            await connection.execute(query, record.user_id, record.date, _enum_value(record.status), _enum_value(record.type))

    async def insert_attendance_if_absent(self, record: AttendanceRecord) -> bool:
        """Inserts the row only when the user has nothing for that date. True if a row was written."""
        query = """
            INSERT INTO attendance (user_id, date, status, type)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (user_id, date) DO NOTHING;
        """
        async with self._pool.acquire() as connection:
            status = await connection.execute(query, record.user_id, record.date, _enum_value(record.status), _enum_value(record.type))
            return _affected_rows(status) > 0

    async def get_attendance_user_ids(self, day: date) -> Set[UUID]:
        query = "SELECT user_id FROM attendance WHERE date = $1;"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, day)
            return {record["user_id"] for record in records}

    async def get_attendance_for_user(self, user_id: UUID, start: date, end: date) -> List[AttendanceRecord]:
        query = """
            SELECT user_id, date, status, type, check_in, check_out FROM attendance
            WHERE user_id = $1 AND date BETWEEN $2 AND $3 ORDER BY date;
        """
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, user_id, start, end)
            return [AttendanceRecord(**record) for record in records]

    # ===== No-teach records =====

    async def insert_no_teach_record(self, record: NoTeachRecord) -> bool:
        """
        Single conditional insert guarded by the (schedule_id, date) unique constraint.
        True if a new row was created, False if one already existed.
        """
        query = """
            INSERT INTO teacher_no_teach_records (teacher_id, schedule_id, date, class_id, subject_id, reason)
            VALUES ($1, $2, $3, $4, $5, $6)
            ON CONFLICT (schedule_id, date) DO NOTHING;
        """
        async with self._pool.acquire() as connection:
            status = await connection.execute(
                query, record.teacher_id, record.schedule_id, record.date,
                record.class_id, record.subject_id, record.reason
            )
            return _affected_rows(status) > 0

    async def get_no_teach_records(self, day: date) -> List[NoTeachRecord]:
        query = """
            SELECT teacher_id, schedule_id, date, class_id, subject_id, reason
            FROM teacher_no_teach_records WHERE date = $1;
        """
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, day)
            return [NoTeachRecord(**record) for record in records]

    # ===== Push subscriptions =====

    async def get_push_subscriptions(self, user_ids: List[UUID]) -> List[PushSubscription]:
        if not user_ids:
            return []
        query = "SELECT id, user_id, endpoint, p256dh, auth FROM push_subscriptions WHERE user_id = ANY($1);"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, user_ids)
            return [PushSubscription(**record) for record in records]

    # ===== Students =====

    async def get_students_with_class(self) -> List[Student]:
        query = "SELECT id, name, nis, class_id FROM students WHERE class_id IS NOT NULL;"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query)
            return [Student(**record) for record in records]

    async def insert_student_attendance_if_absent(self, record: StudentAttendanceRecord) -> bool:
        query = """
            INSERT INTO student_attendance (student_id, class_id, date, status, notes)
            VALUES ($1, $2, $3, $4, $5)
            ON CONFLICT (student_id, date) DO NOTHING;
        """
        async with self._pool.acquire() as connection:
            status = await connection.execute(
                query, record.student_id, record.class_id, record.date, record.status.value, record.notes
            )
            return _affected_rows(status) > 0
