import logging
from datetime import date
from typing import Collection, List, Optional
from uuid import UUID

from ..core.wib import is_friday
from ..db.db_client import AsyncPostgresClient
from ..models.db_models import Holiday
from .errors import NotFoundError, ServiceError

logger = logging.getLogger(__name__)


def is_workday(day: date, holiday_dates: Collection[date]) -> bool:
    """Fridays and listed holidays are not school days."""
    return not is_friday(day) and day not in holiday_dates


class CalendarService:
    """
    Answers "is this a workday" and manages the holiday table.
    """
    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client

    async def non_workday_reason(self, day: date) -> Optional[str]:
        """None on a workday, otherwise the skip message reported by the periodic jobs."""
        if is_friday(day):
            return "Friday (Jumat), skipping - school holiday"
        holiday = await self.db_client.get_holiday(day)
        if holiday:
            return f"Today is a holiday ({holiday.name}), skipping"
        return None

    async def holiday_dates_between(self, start: date, end: date) -> set[date]:
        holidays = await self.db_client.get_holidays(start, end)
        return {holiday.date for holiday in holidays}

    async def list_holidays(self, start: Optional[date] = None, end: Optional[date] = None) -> List[Holiday]:
        return await self.db_client.get_holidays(start, end)

    async def add_holiday(self, day: date, name: str, description: Optional[str] = None) -> Holiday:
        holiday = await self.db_client.add_holiday(day, name, description)
        if not holiday:
            raise ServiceError(f"A holiday is already registered on {day.isoformat()}.")
        logger.info(f"Holiday '{name}' added on {day.isoformat()}.")
        return holiday

    async def delete_holiday(self, holiday_id: UUID):
        if not await self.db_client.delete_holiday(holiday_id):
            raise NotFoundError("Holiday not found.")
        logger.info(f"Holiday {holiday_id} deleted.")
