from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from ..models.db_models import Profile
from ..services.calendar_service import CalendarService
from ..services.errors import NotFoundError, ServiceError
from .auth import get_current_user, require_admin
from .dependencies import get_calendar_service
from .schemas.holiday import HolidayCreateRequest, HolidayResponse
from .utilities.limiter import limiter

router = APIRouter(prefix="/holidays", tags=["Holidays"])


@router.get("", response_model=List[HolidayResponse], summary="List holidays, optionally within a date range")
@limiter.limit("60/minute")
async def list_holidays(
    request: Request,
    start: Optional[date] = None,
    end: Optional[date] = None,
    user: Profile = Depends(get_current_user),
    service: CalendarService = Depends(get_calendar_service)
):
    return await service.list_holidays(start, end)


@router.post("", response_model=HolidayResponse, status_code=status.HTTP_201_CREATED, summary="Register a holiday")
@limiter.limit("10/minute")
async def add_holiday(
    request: Request,
    create_request: HolidayCreateRequest,
    user: Profile = Depends(require_admin),
    service: CalendarService = Depends(get_calendar_service)
):
    try:
        return await service.add_holiday(create_request.date, create_request.name, create_request.description)
    except ServiceError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete("/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a holiday")
@limiter.limit("10/minute")
async def delete_holiday(
    request: Request,
    holiday_id: UUID,
    user: Profile = Depends(require_admin),
    service: CalendarService = Depends(get_calendar_service)
):
    try:
        await service.delete_holiday(holiday_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
