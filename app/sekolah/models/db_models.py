# app/sekolah/models/db_models.py

from pydantic import BaseModel, Field
from datetime import date, datetime, time
from enum import Enum
from typing import Optional
from uuid import UUID


class AttendanceStatus(str, Enum):
    HADIR = "hadir"
    IZIN = "izin"
    SAKIT = "sakit"
    ALPHA = "alpha"
    # Check-in apps have written both spellings.
    LATE = "late"
    TERLAMBAT = "terlambat"


class AttendanceOrigin(str, Enum):
    """Value of ``attendance.type``: who or what wrote the row."""
    MANUAL = "manual"
    PERMISSION = "permission"
    AUTO = "auto"


class LeaveType(str, Enum):
    IZIN = "izin"
    SAKIT = "sakit"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Role(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STAFF = "staff"


class Profile(BaseModel):
    """
    A school member, mapping to the 'profiles' table.
    """
    id: UUID
    full_name: str
    email: Optional[str] = None
    nip: Optional[str] = None
    role: str = Field(..., description="admin, teacher or staff")
    can_teach: Optional[bool] = None


class Schedule(BaseModel):
    """
    A weekly lesson slot, mapping to the 'schedules' table. Treated as an immutable template.
    """
    id: UUID
    day: str = Field(..., description="Indonesian weekday name, e.g. 'Senin'")
    start_time: time
    end_time: time
    teacher_id: UUID
    class_id: UUID
    subject_id: UUID


class LeaveRequest(BaseModel):
    """
    A teacher's leave request, mapping to the 'teacher_leave_requests' table.
    """
    id: UUID
    teacher_id: UUID
    request_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None


class AttendanceRecord(BaseModel):
    """
    One row per (user, date) in the 'attendance' table.
    Both status and type are nullable columns.
    """
    user_id: UUID
    date: date
    status: Optional[AttendanceStatus]
    type: Optional[AttendanceOrigin] = AttendanceOrigin.MANUAL
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None


class NoTeachRecord(BaseModel):
    """
    Marks a scheduled lesson with no teaching session once checkout time passed.
    Unique on (schedule_id, date).
    """
    teacher_id: UUID
    schedule_id: UUID
    date: date
    class_id: UUID
    subject_id: UUID
    reason: Optional[str] = None


class Holiday(BaseModel):
    id: UUID
    date: date
    name: str
    description: Optional[str] = None


class SchoolSettings(BaseModel):
    """
    School-wide configuration. Times are kept as ``HH:MM`` strings.
    """
    school_name: str = "MA Al-Ittifaqiah 2"
    school_address: str = ""
    school_phone: str = ""
    school_icon_url: str = ""
    check_in_time: str = "07:00"
    late_time: str = "07:30"
    check_out_time: str = "14:00"


class PushSubscription(BaseModel):
    id: UUID
    user_id: UUID
    endpoint: str
    p256dh: str
    auth: str


class Student(BaseModel):
    id: UUID
    name: str
    nis: Optional[str] = None
    class_id: Optional[UUID] = None


class StudentAttendanceRecord(BaseModel):
    student_id: UUID
    class_id: UUID
    date: date
    status: AttendanceStatus
    notes: Optional[str] = None
