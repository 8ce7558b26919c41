import logging
from typing import List, Optional
from uuid import UUID

import httpx
from pydantic import BaseModel

from ..config.config import settings

logger = logging.getLogger(__name__)


class NotificationConfigError(Exception):
    """Push delivery credentials are not configured; the invocation cannot proceed."""
    pass


class PushDispatchError(Exception):
    """A single dispatch call failed (transport error or non-2xx answer)."""
    pass


class PushNotification(BaseModel):
    title: str
    body: str
    tag: Optional[str] = None
    url: Optional[str] = None
    icon: Optional[str] = None


class DispatchResult(BaseModel):
    sent: int = 0
    failed: int = 0


class PushDispatcher:
    """
    Client for the push-notification dispatch service.

    The dispatch service owns the subscription encryption and VAPID signing;
    this client only tells it what to send and to whom.
    """
    def __init__(self, base_url: str, token: str, timeout: float = 15.0, http_client: Optional[httpx.AsyncClient] = None):
        self._url = f"{base_url.rstrip('/')}/send-push-notification"
        self._headers = {"Authorization": f"Bearer {token}"}
        self._timeout = timeout
        self._http_client = http_client

    @classmethod
    def from_settings(cls, http_client: Optional[httpx.AsyncClient] = None) -> "PushDispatcher":
        if not settings.PUSH_DISPATCH_URL or not settings.PUSH_DISPATCH_TOKEN:
            raise NotificationConfigError("Push dispatch credentials not configured")
        return cls(
            base_url=settings.PUSH_DISPATCH_URL,
            token=settings.PUSH_DISPATCH_TOKEN,
            timeout=settings.PUSH_DISPATCH_TIMEOUT_SECONDS,
            http_client=http_client,
        )

    async def _post(self, client: httpx.AsyncClient, payload: dict) -> httpx.Response:
        response = await client.post(self._url, json=payload, headers=self._headers)
        response.raise_for_status()
        return response

    async def send(self, notification: PushNotification, user_ids: List[UUID]) -> DispatchResult:
        payload = {
            "notification": notification.model_dump(exclude_none=True),
            "user_ids": [str(user_id) for user_id in user_ids],
        }
        try:
            if self._http_client is not None:
                response = await self._post(self._http_client, payload)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await self._post(client, payload)
        except httpx.HTTPStatusError as e:
            raise PushDispatchError(f"Dispatch service error: {e.response.status_code} - {e.response.text}") from e
        except httpx.HTTPError as e:
            raise PushDispatchError(f"Dispatch service unreachable: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        return DispatchResult(sent=int(body.get("sent", 0)), failed=int(body.get("failed", 0)))
