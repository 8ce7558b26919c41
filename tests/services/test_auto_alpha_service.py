import pytest
import pytest_asyncio
import uuid
from datetime import date, datetime
from unittest.mock import AsyncMock

from app.sekolah.core.wib import WIB_TZ
from app.sekolah.services.auto_alpha_service import AutoAlphaService, STUDENT_ALPHA_NOTE
from app.sekolah.models.db_models import (
    AttendanceOrigin,
    AttendanceStatus,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
    Profile,
    SchoolSettings,
    Student,
)

MONDAY = date(2026, 10, 19)
AFTER_CHECKOUT = datetime(2026, 10, 19, 14, 30, tzinfo=WIB_TZ)


@pytest_asyncio.fixture
async def service_instance():
    mock_db_client = AsyncMock()
    mock_db_client.get_holiday.return_value = None
    mock_db_client.get_approved_leaves_on.return_value = []
    mock_db_client.get_teacher_ids_with_schedule.return_value = set()
    mock_db_client.get_attendance_user_ids.return_value = set()
    mock_db_client.get_profiles_by_roles.return_value = []
    mock_db_client.get_students_with_class.return_value = []
    mock_db_client.insert_attendance_if_absent.return_value = True
    mock_db_client.insert_student_attendance_if_absent.return_value = True
    mock_settings_service = AsyncMock()
    mock_settings_service.get_settings.return_value = SchoolSettings(check_out_time="14:00")
    return AutoAlphaService(db_client=mock_db_client, settings_service=mock_settings_service), mock_db_client


def written_records(mock_db_client):
    return {call.args[0].user_id: call.args[0] for call in mock_db_client.insert_attendance_if_absent.call_args_list}


@pytest.mark.asyncio
class TestAutoAlphaService:

    async def test_before_checkout_is_skipped(self, service_instance):
        service, mock_db_client = service_instance

        result = await service.mark_absent_as_alpha(now=datetime(2026, 10, 19, 13, 0, tzinfo=WIB_TZ))

        assert result.skipped
        mock_db_client.get_profiles_by_roles.assert_not_called()

    async def test_scheduled_teacher_without_attendance_becomes_alpha(self, service_instance):
        service, mock_db_client = service_instance
        scheduled = Profile(id=uuid.uuid4(), full_name="Pak Budi", role="teacher", can_teach=True)
        unscheduled = Profile(id=uuid.uuid4(), full_name="Bu Sari", role="teacher", can_teach=True)
        mock_db_client.get_profiles_by_roles.return_value = [scheduled, unscheduled]
        mock_db_client.get_teacher_ids_with_schedule.return_value = {scheduled.id}

        result = await service.mark_absent_as_alpha(now=AFTER_CHECKOUT)

        records = written_records(mock_db_client)
        assert list(records) == [scheduled.id]
        assert records[scheduled.id].status == AttendanceStatus.ALPHA
        assert records[scheduled.id].type == AttendanceOrigin.AUTO
        assert result.teachers_marked == 1
        assert result.teachers_skipped == 1
        mock_db_client.get_teacher_ids_with_schedule.assert_called_once_with("Senin")

    async def test_teacher_on_leave_gets_leave_status(self, service_instance):
        service, mock_db_client = service_instance
        teacher = Profile(id=uuid.uuid4(), full_name="Pak Budi", role="teacher", can_teach=False)
        mock_db_client.get_profiles_by_roles.return_value = [teacher]
        mock_db_client.get_approved_leaves_on.return_value = [LeaveRequest(
            id=uuid.uuid4(), teacher_id=teacher.id, request_type=LeaveType.IZIN,
            start_date=MONDAY, end_date=MONDAY, reason="Acara keluarga", status=LeaveStatus.APPROVED
        )]

        await service.mark_absent_as_alpha(now=AFTER_CHECKOUT)

        record = written_records(mock_db_client)[teacher.id]
        assert record.status == AttendanceStatus.IZIN
        assert record.type == AttendanceOrigin.PERMISSION

    async def test_existing_attendance_is_left_alone(self, service_instance):
        service, mock_db_client = service_instance
        staff = Profile(id=uuid.uuid4(), full_name="Pak Anwar", role="staff")
        mock_db_client.get_profiles_by_roles.return_value = [staff]
        mock_db_client.get_attendance_user_ids.return_value = {staff.id}

        result = await service.mark_absent_as_alpha(now=AFTER_CHECKOUT)

        assert result.teachers_marked == 0
        mock_db_client.insert_attendance_if_absent.assert_not_called()

    async def test_staff_and_students_are_marked(self, service_instance):
        service, mock_db_client = service_instance
        staff = Profile(id=uuid.uuid4(), full_name="Pak Anwar", role="staff")
        student = Student(id=uuid.uuid4(), name="Ahmad", class_id=uuid.uuid4())
        mock_db_client.get_profiles_by_roles.return_value = [staff]
        mock_db_client.get_students_with_class.return_value = [student]

        result = await service.mark_absent_as_alpha(now=AFTER_CHECKOUT)

        assert written_records(mock_db_client)[staff.id].status == AttendanceStatus.ALPHA
        student_record = mock_db_client.insert_student_attendance_if_absent.call_args.args[0]
        assert student_record.student_id == student.id
        assert student_record.notes == STUDENT_ALPHA_NOTE
        assert result.students_marked == 1
