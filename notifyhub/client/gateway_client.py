"""Async HTTP client for the notification delivery gateway."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 8.0


class GatewayError(Exception):
    """Gateway request failed in a way that retrying will not fix."""

    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail or message


class TransientGatewayError(GatewayError):
    """Gateway request failed because of a timeout, network error or 5xx response."""


class PolledNotification(BaseModel):
    """Notification item as returned by ``GET /notifications/unread``."""

    id: int
    message: str
    created_at: datetime
    is_read: bool = False
    target_url: str | None = None


_NOTIFICATION_LIST = TypeAdapter(list[PolledNotification])


class NotificationGatewayClient:
    """Fetch and acknowledge the notifications of one authenticated user."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        """Close the underlying connection pool."""

        await self._client.aclose()

    async def fetch_unread(self) -> list[PolledNotification]:
        response = await self._request("GET", "/notifications/unread")
        try:
            return _NOTIFICATION_LIST.validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            raise GatewayError("Malformed notification list returned by gateway") from exc

    async def mark_read(self, notification_ids: Iterable[int]) -> int:
        """Mark ``notification_ids`` as read and return the updated count."""

        ids = list(dict.fromkeys(notification_ids))
        response = await self._request(
            "POST", "/notifications/mark-read", json_body={"ids": ids}
        )
        try:
            return int(response.json()["updated_count"])
        except (KeyError, TypeError, ValueError) as exc:
            raise GatewayError("Malformed mark-read response returned by gateway") from exc

    async def _request(
        self, method: str, url: str, *, json_body: dict | None = None
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, json=json_body)
        except httpx.TimeoutException as exc:
            raise TransientGatewayError(f"{method} {url} timed out") from exc
        except httpx.TransportError as exc:
            raise TransientGatewayError(f"{method} {url} failed: {exc}") from exc

        if response.is_success:
            return response

        detail = _extract_detail(response)
        message = f"{method} {url} returned {response.status_code}"
        if response.status_code >= 500 or response.status_code == 429:
            raise TransientGatewayError(message, response.status_code, detail)
        raise GatewayError(message, response.status_code, detail)


def _extract_detail(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict) and body.get("detail") is not None:
        return str(body["detail"])
    return None


__all__ = [
    "GatewayError",
    "NotificationGatewayClient",
    "PolledNotification",
    "TransientGatewayError",
]
