import json
import uuid

import httpx
import pytest

from app.sekolah.config.config import settings
from app.sekolah.tools.push_dispatcher import (
    NotificationConfigError,
    PushDispatchError,
    PushDispatcher,
    PushNotification,
)

DISPATCH_URL = "https://dispatch.example/functions/v1/send-push-notification"


@pytest.fixture
def notification() -> PushNotification:
    return PushNotification(title="⏰ Pengingat Absensi", body="Jangan lupa absen!", tag="attendance-reminder", url="/absensi")


@pytest.fixture
def dispatcher() -> PushDispatcher:
    return PushDispatcher(base_url="https://dispatch.example/functions/v1/", token="service-token")


@pytest.mark.asyncio
async def test_send_posts_notification_and_recipients(httpx_mock, dispatcher, notification):
    user_id = uuid.uuid4()
    httpx_mock.add_response(url=DISPATCH_URL, method="POST", json={"sent": 2, "failed": 1})

    result = await dispatcher.send(notification, [user_id])

    assert result.sent == 2
    assert result.failed == 1
    request = httpx_mock.get_request()
    assert request.headers["Authorization"] == "Bearer service-token"
    body = json.loads(request.content)
    assert body["user_ids"] == [str(user_id)]
    assert body["notification"]["tag"] == "attendance-reminder"
    assert "icon" not in body["notification"]


@pytest.mark.asyncio
async def test_error_status_raises(httpx_mock, dispatcher, notification):
    httpx_mock.add_response(url=DISPATCH_URL, method="POST", status_code=500, text="boom")

    with pytest.raises(PushDispatchError, match="500"):
        await dispatcher.send(notification, [uuid.uuid4()])


@pytest.mark.asyncio
async def test_transport_error_raises(httpx_mock, dispatcher, notification):
    httpx_mock.add_exception(httpx.ConnectError("connection refused"))

    with pytest.raises(PushDispatchError, match="unreachable"):
        await dispatcher.send(notification, [uuid.uuid4()])


@pytest.mark.asyncio
async def test_non_json_answer_counts_nothing(httpx_mock, dispatcher, notification):
    httpx_mock.add_response(url=DISPATCH_URL, method="POST", text="ok")

    result = await dispatcher.send(notification, [uuid.uuid4()])

    assert result.sent == 0
    assert result.failed == 0


def test_from_settings_requires_credentials(monkeypatch):
    monkeypatch.setattr(settings, "PUSH_DISPATCH_URL", None)
    monkeypatch.setattr(settings, "PUSH_DISPATCH_TOKEN", "service-token")

    with pytest.raises(NotificationConfigError, match="not configured"):
        PushDispatcher.from_settings()


def test_from_settings_builds_client(monkeypatch):
    monkeypatch.setattr(settings, "PUSH_DISPATCH_URL", "https://dispatch.example")
    monkeypatch.setattr(settings, "PUSH_DISPATCH_TOKEN", "service-token")

    assert isinstance(PushDispatcher.from_settings(), PushDispatcher)
