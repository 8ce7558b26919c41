import logging
from datetime import date
from typing import Callable, List, Optional
from uuid import UUID

from ..core.wib import iter_dates
from ..db.db_client import AsyncPostgresClient
from ..models.db_models import (
    AttendanceOrigin,
    AttendanceRecord,
    AttendanceStatus,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
    Profile,
)
from ..tools.push_dispatcher import PushDispatcher, PushNotification
from .calendar_service import CalendarService, is_workday
from .errors import NotFoundError, ReconciliationError, ServiceError

logger = logging.getLogger(__name__)


def _leave_decision_notification(status: LeaveStatus, request_type: LeaveType) -> PushNotification:
    approved = status == LeaveStatus.APPROVED
    status_text = "Disetujui" if approved else "Ditolak"
    type_text = "Sakit" if request_type == LeaveType.SAKIT else "Izin"
    return PushNotification(
        title=f"{'✅' if approved else '❌'} Perizinan {status_text}",
        body=f"Pengajuan {type_text} Anda telah {status_text.lower()}.",
        tag="leave-request",
        url="/perizinan-guru",
    )


class LeaveService:
    """
    Leave requests and the attendance reconciliation that follows an approval.
    """
    def __init__(
        self,
        db_client: AsyncPostgresClient,
        dispatcher_factory: Callable[[], PushDispatcher] = PushDispatcher.from_settings,
    ):
        self.db_client = db_client
        self.calendar = CalendarService(db_client)
        self.dispatcher_factory = dispatcher_factory

    async def submit_leave_request(self, teacher: Profile, request_type: LeaveType, start_date: date, end_date: date, reason: str) -> LeaveRequest:
        if end_date < start_date:
            raise ServiceError("end_date must not be before start_date.")
        try:
            leave = await self.db_client.add_leave_request(teacher.id, request_type.value, start_date, end_date, reason)
        except Exception as e:
            logger.error(f"Error creating leave request for teacher {teacher.id}.", exc_info=True)
            raise ServiceError("A database error occurred while creating the leave request.") from e
        logger.info(f"Leave request {leave.id} ({request_type.value}, {start_date} - {end_date}) submitted by {teacher.id}.")
        return leave

    async def list_leave_requests(self, status: Optional[LeaveStatus] = None, teacher_id: Optional[UUID] = None) -> List[LeaveRequest]:
        return await self.db_client.get_leave_requests(status.value if status else None, teacher_id)

    async def _decide(self, request_id: UUID, status: LeaveStatus, approver: Profile, rejection_reason: Optional[str] = None) -> LeaveRequest:
        decided = await self.db_client.decide_leave_request(request_id, status, approver.id, rejection_reason)
        if decided:
            return decided
        existing = await self.db_client.get_leave_request(request_id)
        if not existing:
            raise NotFoundError("Leave request not found.")
        raise ServiceError(f"Leave request has already been {existing.status.value}.")

    async def reconcile_leave_attendance(self, leave: LeaveRequest) -> List[date]:
        """
        Writes one attendance row per workday in the leave's date range.

        Fridays and holidays are skipped. Rows are upserted on (user_id, date),
        so running this twice for the same request is harmless. A failed upsert
        stops the loop; rows already written are kept.
        """
        holiday_dates = await self.calendar.holiday_dates_between(leave.start_date, leave.end_date)
        status = AttendanceStatus(leave.request_type.value)

        written = []
        for day in iter_dates(leave.start_date, leave.end_date):
            if not is_workday(day, holiday_dates):
                continue
            await self.db_client.upsert_attendance(AttendanceRecord(
                user_id=leave.teacher_id, date=day, status=status, type=AttendanceOrigin.PERMISSION
            ))
            written.append(day)

        logger.info(f"Leave {leave.id}: {len(written)} attendance rows written as '{status.value}'.")
        return written

    async def _notify(self, leave: LeaveRequest):
        try:
            dispatcher = self.dispatcher_factory()
            delivery = await dispatcher.send(_leave_decision_notification(leave.status, leave.request_type), [leave.teacher_id])
            if delivery.sent == 0:
                logger.warning(f"Leave decision notification for {leave.id} reached no devices ({delivery.failed} failed).")
        except Exception as e:
            logger.warning(f"Failed to send leave decision notification for {leave.id}: {e}")

    async def approve_leave_request(self, request_id: UUID, approver: Profile) -> LeaveRequest:
        leave = await self._decide(request_id, LeaveStatus.APPROVED, approver)
        logger.info(f"Leave request {leave.id} approved by {approver.id}.")

        try:
            await self.reconcile_leave_attendance(leave)
            # Global flag; nothing turns it back on when the leave ends.
            await self.db_client.set_can_teach(leave.teacher_id, False)
        except Exception as e:
            logger.error(f"Attendance reconciliation failed for leave {leave.id}.", exc_info=True)
            raise ReconciliationError("Leave approved, but updating attendance failed. Run reconciliation again to retry.") from e

        await self._notify(leave)
        return leave

    async def rerun_reconciliation(self, request_id: UUID) -> List[date]:
        """Re-applies an approved leave to attendance, e.g. after a partial failure."""
        leave = await self.db_client.get_leave_request(request_id)
        if not leave:
            raise NotFoundError("Leave request not found.")
        if leave.status != LeaveStatus.APPROVED:
            raise ServiceError("Only approved leave requests can be reconciled.")
        try:
            return await self.reconcile_leave_attendance(leave)
        except Exception as e:
            logger.error(f"Attendance reconciliation failed for leave {leave.id}.", exc_info=True)
            raise ReconciliationError("A database error occurred while updating attendance.") from e

    async def reject_leave_request(self, request_id: UUID, approver: Profile, rejection_reason: Optional[str] = None) -> LeaveRequest:
        leave = await self._decide(request_id, LeaveStatus.REJECTED, approver, rejection_reason)
        logger.info(f"Leave request {leave.id} rejected by {approver.id}.")
        await self._notify(leave)
        return leave

    async def can_teach_on(self, teacher_id: UUID, day: date) -> bool:
        """Derived from approved leave ranges rather than the stored can_teach flag."""
        leaves = await self.db_client.get_approved_leaves_on(day)
        return all(leave.teacher_id != teacher_id for leave in leaves)
