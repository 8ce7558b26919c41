import pytest
import uuid
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from app.sekolah.db.redis_client import RedisClient, SETTINGS_CACHE_KEY
from app.sekolah.models.db_models import Profile, SchoolSettings
from app.sekolah.models.redis_models import SchoolSettingsCache, UserSessionRedis


@pytest.fixture
def client() -> RedisClient:
    redis_client = RedisClient(pool=MagicMock())
    redis_client._redis = AsyncMock()
    return redis_client


@pytest.mark.asyncio
async def test_claim_daily_marker_uses_set_nx(client):
    client._redis.set.return_value = True

    assert await client.claim_daily_marker("attendance_reminder", date(2026, 10, 19)) is True
    client._redis.set.assert_called_once_with("attendance_reminder:2026-10-19", "1", nx=True, ex=24 * 3600)


@pytest.mark.asyncio
async def test_claim_daily_marker_already_taken(client):
    client._redis.set.return_value = None
    assert await client.claim_daily_marker("attendance_reminder", date(2026, 10, 19)) is False


@pytest.mark.asyncio
async def test_user_session_round_trip_key(client):
    profile = Profile(id=uuid.uuid4(), full_name="Pak Budi", role="teacher")
    now = datetime.now(timezone.utc)
    session = UserSessionRedis(user_data=profile, session_id=uuid.uuid4(), session_start_time=now, session_end_time=now + timedelta(minutes=15))

    await client.save_user_session(session, ttl=900)

    key, payload = client._redis.set.call_args.args
    assert key == f"users:{profile.id}"
    assert client._redis.set.call_args.kwargs == {"ex": 900}

    client._redis.get.return_value = payload
    assert (await client.get_user_session(str(profile.id))).user_data == profile


@pytest.mark.asyncio
async def test_settings_cache_missing(client):
    client._redis.get.return_value = None
    assert await client.get_settings_cache() is None
    client._redis.get.assert_called_once_with(SETTINGS_CACHE_KEY)


@pytest.mark.asyncio
async def test_settings_cache_stored_with_ttl(client):
    cache = SchoolSettingsCache(settings=SchoolSettings(), cached_at=datetime.now(timezone.utc))

    await client.save_settings_cache(cache, ttl=60)

    assert client._redis.set.call_args.args[0] == SETTINGS_CACHE_KEY
    assert client._redis.set.call_args.kwargs == {"ex": 60}
