import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..models.db_models import Profile
from ..services.errors import ServiceError
from ..services.settings_service import SettingsService
from .auth import get_current_user, require_admin
from .dependencies import get_settings_service
from .schemas.settings import SchoolSettingsResponse, SchoolSettingsUpdate
from .utilities.limiter import limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["School Settings"])


@router.get("", response_model=SchoolSettingsResponse, summary="Get the effective school settings")
@limiter.limit("60/minute")
async def get_school_settings(
    request: Request,
    user: Profile = Depends(get_current_user),
    service: SettingsService = Depends(get_settings_service)
):
    resolved = await service.resolve()
    return SchoolSettingsResponse(**resolved.settings.model_dump(), source=resolved.source)


@router.put("", response_model=SchoolSettingsResponse, summary="Replace the school settings")
@limiter.limit("10/minute")
async def update_school_settings(
    request: Request,
    update_request: SchoolSettingsUpdate,
    user: Profile = Depends(require_admin),
    service: SettingsService = Depends(get_settings_service)
):
    try:
        saved = await service.update_settings(update_request.to_settings())
    except ServiceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    logger.info(f"School settings changed by '{user.id}'.")
    return SchoolSettingsResponse(**saved.model_dump(), source="remote")
