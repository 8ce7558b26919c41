from datetime import date, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..core.wib import wib_date
from ..db.db_client import AsyncPostgresClient
from ..models.db_models import AttendanceRecord, NoTeachRecord, Profile
from .auth import get_current_user, require_admin
from .dependencies import get_db_client
from .utilities.limiter import limiter

router = APIRouter(tags=["Records"])

MAX_RANGE_DAYS = 366


@router.get("/attendance/me", response_model=List[AttendanceRecord], summary="Own attendance rows in a date range")
@limiter.limit("60/minute")
async def get_my_attendance(
    request: Request,
    start: Optional[date] = None,
    end: Optional[date] = None,
    user: Profile = Depends(get_current_user),
    db_client: AsyncPostgresClient = Depends(get_db_client)
):
    """Defaults to the last 30 days up to today (WIB)."""
    end = end or wib_date()
    start = start or end - timedelta(days=30)
    if end < start or (end - start).days > MAX_RANGE_DAYS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid date range.")
    return await db_client.get_attendance_for_user(user.id, start, end)


@router.get("/no-teach-records", response_model=List[NoTeachRecord], summary="Lessons recorded as not taught on a day")
@limiter.limit("60/minute")
async def get_no_teach_records(
    request: Request,
    day: Optional[date] = None,
    user: Profile = Depends(require_admin),
    db_client: AsyncPostgresClient = Depends(get_db_client)
):
    return await db_client.get_no_teach_records(day or wib_date())
