import pytest
import pytest_asyncio
import httpx
import uuid
from datetime import date
from unittest.mock import AsyncMock

from app.sekolah.main import app
from app.sekolah.api.auth import get_current_user
from app.sekolah.api.dependencies import get_calendar_service
from app.sekolah.api.utilities.limiter import limiter
from app.sekolah.models.db_models import Holiday, Profile
from app.sekolah.services.errors import NotFoundError, ServiceError

ADMIN = Profile(id=uuid.uuid4(), full_name="Ibu Kepala", role="admin")
TEACHER = Profile(id=uuid.uuid4(), full_name="Pak Budi", role="teacher", can_teach=True)


@pytest_asyncio.fixture
async def calendar_service():
    limiter.enabled = False
    service = AsyncMock()
    app.dependency_overrides[get_calendar_service] = lambda: service
    yield service
    app.dependency_overrides.clear()
    limiter.enabled = True


def client_as(user: Profile) -> httpx.AsyncClient:
    app.dependency_overrides[get_current_user] = lambda: user
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test/api/v1")


@pytest.mark.asyncio
class TestHolidayEndpoints:

    async def test_duplicate_holiday_conflicts(self, calendar_service):
        calendar_service.add_holiday.side_effect = ServiceError("A holiday is already registered on 2026-11-25.")

        async with client_as(ADMIN) as client:
            response = await client.post("/holidays", json={"date": "2026-11-25", "name": "Hari Guru"})

        assert response.status_code == 409

    async def test_teacher_cannot_register_holiday(self, calendar_service):
        async with client_as(TEACHER) as client:
            response = await client.post("/holidays", json={"date": "2026-11-25", "name": "Hari Guru"})

        assert response.status_code == 403
        calendar_service.add_holiday.assert_not_called()

    async def test_list_holidays(self, calendar_service):
        holiday = Holiday(id=uuid.uuid4(), date=date(2026, 11, 25), name="Hari Guru")
        calendar_service.list_holidays.return_value = [holiday]

        async with client_as(TEACHER) as client:
            response = await client.get("/holidays", params={"start": "2026-11-01", "end": "2026-11-30"})

        assert response.json()[0]["name"] == "Hari Guru"
        calendar_service.list_holidays.assert_called_once_with(date(2026, 11, 1), date(2026, 11, 30))

    async def test_delete_missing_holiday(self, calendar_service):
        calendar_service.delete_holiday.side_effect = NotFoundError("Holiday not found.")

        async with client_as(ADMIN) as client:
            response = await client.delete(f"/holidays/{uuid.uuid4()}")

        assert response.status_code == 404
