import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from ..config.config import settings
from ..services.auto_alpha_service import AutoAlphaService
from ..services.no_teach_service import NoTeachService
from ..services.reminder_service import ReminderService
from .dependencies import get_auto_alpha_service, get_no_teach_service, get_reminder_service
from .utilities.limiter import limiter

logger = logging.getLogger(__name__)


def verify_cron_secret(x_cron_secret: str = Header(None, description="Shared secret of the external cron caller.")):
    expected = settings.CRON_SECRET_KEY
    if not expected or not x_cron_secret or not hmac.compare_digest(x_cron_secret.encode('utf-8'), expected.encode('utf-8')):
        raise HTTPException(status_code=403, detail="Invalid cron secret.")


router = APIRouter(prefix="/tasks", tags=["Scheduled Tasks"], dependencies=[Depends(verify_cron_secret)])


def _error_response(job: str, e: Exception) -> JSONResponse:
    logger.error(f"{job} failed: {e}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": str(e)})


@router.post("/mark-teachers-not-teaching", summary="Record scheduled lessons that were never started")
@limiter.limit("30/minute")
async def mark_teachers_not_teaching(request: Request, service: NoTeachService = Depends(get_no_teach_service)):
    try:
        return await service.mark_teachers_not_teaching()
    except Exception as e:
        return _error_response("mark_teachers_not_teaching", e)


@router.post("/attendance-reminder", summary="Push a check-in reminder before the late cutoff")
@limiter.limit("30/minute")
async def attendance_reminder(request: Request, service: ReminderService = Depends(get_reminder_service)):
    try:
        return await service.send_attendance_reminders()
    except Exception as e:
        return _error_response("attendance_reminder", e)


@router.post("/auto-alpha-attendance", summary="Mark missing attendance as alpha after checkout")
@limiter.limit("30/minute")
async def auto_alpha_attendance(request: Request, service: AutoAlphaService = Depends(get_auto_alpha_service)):
    try:
        return await service.mark_absent_as_alpha()
    except Exception as e:
        return _error_response("auto_alpha_attendance", e)
