import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from ..core.wib import wib_date
from ..models.db_models import LeaveStatus, Profile, Role
from ..services.errors import NotFoundError, ReconciliationError, ServiceError
from ..services.leave_service import LeaveService
from .auth import get_current_user, require_admin, require_roles
from .dependencies import get_leave_service
from .schemas.leave import CanTeachResponse, LeaveCreateRequest, LeaveRejectRequest, LeaveResponse, ReconcileResponse
from .utilities.limiter import limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leaves", tags=["Leave Requests"])


def _to_http(e: ServiceError) -> HTTPException:
    if isinstance(e, ReconciliationError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED, summary="Submit a leave request")
@limiter.limit("10/minute")
async def submit_leave_request(
    request: Request,
    create_request: LeaveCreateRequest,
    user: Profile = Depends(require_roles(Role.TEACHER)),
    service: LeaveService = Depends(get_leave_service)
):
    try:
        return await service.submit_leave_request(
            teacher=user, request_type=create_request.request_type,
            start_date=create_request.start_date, end_date=create_request.end_date, reason=create_request.reason
        )
    except ServiceError as e:
        raise _to_http(e)


@router.get("", response_model=List[LeaveResponse], summary="List leave requests")
@limiter.limit("60/minute")
async def list_leave_requests(
    request: Request,
    status_filter: Optional[LeaveStatus] = Query(None, alias="status"),
    user: Profile = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service)
):
    """Admins see every request; everyone else sees only their own."""
    teacher_id = None if user.role == Role.ADMIN.value else user.id
    return await service.list_leave_requests(status=status_filter, teacher_id=teacher_id)


@router.get("/teachers/{teacher_id}/can-teach", response_model=CanTeachResponse, summary="Whether a teacher is free of approved leave on a day")
@limiter.limit("60/minute")
async def can_teach_on(
    request: Request,
    teacher_id: UUID,
    day: Optional[date] = None,
    user: Profile = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service)
):
    if user.role != Role.ADMIN.value and user.id != teacher_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You may only query your own availability.")
    day = day or wib_date()
    return CanTeachResponse(teacher_id=teacher_id, date=day, can_teach=await service.can_teach_on(teacher_id, day))


@router.post("/{leave_id}/approve", response_model=LeaveResponse, summary="Approve a pending leave request")
@limiter.limit("30/minute")
async def approve_leave_request(
    request: Request,
    leave_id: UUID,
    user: Profile = Depends(require_admin),
    service: LeaveService = Depends(get_leave_service)
):
    try:
        return await service.approve_leave_request(leave_id, approver=user)
    except ServiceError as e:
        raise _to_http(e)


@router.post("/{leave_id}/reject", response_model=LeaveResponse, summary="Reject a pending leave request")
@limiter.limit("30/minute")
async def reject_leave_request(
    request: Request,
    leave_id: UUID,
    reject_request: Optional[LeaveRejectRequest] = None,
    user: Profile = Depends(require_admin),
    service: LeaveService = Depends(get_leave_service)
):
    reason = reject_request.rejection_reason if reject_request else None
    try:
        return await service.reject_leave_request(leave_id, approver=user, rejection_reason=reason)
    except ServiceError as e:
        raise _to_http(e)


@router.post("/{leave_id}/reconcile", response_model=ReconcileResponse, summary="Re-apply an approved leave to attendance")
@limiter.limit("10/minute")
async def reconcile_leave_request(
    request: Request,
    leave_id: UUID,
    user: Profile = Depends(require_admin),
    service: LeaveService = Depends(get_leave_service)
):
    try:
        written = await service.rerun_reconciliation(leave_id)
    except ServiceError as e:
        raise _to_http(e)
    return ReconcileResponse(leave_id=leave_id, dates_written=written)
