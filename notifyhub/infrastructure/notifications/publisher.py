"""Push freshly fanned-out notifications to realtime subscribers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from anyio import from_thread

from notifyhub.domain.entities import Notification, NotificationDelivery
from notifyhub.utils import to_wire_timestamp

from .manager import ConnectionRegistry, connection_registry

logger = logging.getLogger(__name__)


class NotificationPublisher:
    """Serialize notifications and schedule their delivery on the registry.

    Pushing is best effort: polling remains the source of truth, so a push
    that cannot be scheduled is only logged.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry

    def dispatch(self, notification: Notification, recipients: Iterable[int]) -> None:
        user_ids = sorted({user_id for user_id in recipients if user_id})
        if not user_ids or not self._registry.is_running:
            return

        message = {"type": "notification", "data": serialize_notification(notification)}
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run_sync(self._registry.schedule_broadcast, user_ids, message)
            except RuntimeError:
                logger.debug(
                    "No event loop available to push notification %s", notification.id
                )
        else:
            self._registry.schedule_broadcast(user_ids, message)


def serialize_notification(
    notification: Notification, *, is_read: bool = False
) -> dict[str, Any]:
    """Return the wire representation shared by HTTP and websocket clients."""

    return {
        "id": notification.id,
        "message": notification.message,
        "created_at": to_wire_timestamp(notification.created_at),
        "is_read": is_read,
        "target_url": notification.target_url,
    }


def serialize_delivery(delivery: NotificationDelivery) -> dict[str, Any]:
    return serialize_notification(delivery.notification, is_read=delivery.is_read)


notification_publisher = NotificationPublisher(connection_registry)


def dispatch_notification(notification: Notification, recipients: Iterable[int]) -> None:
    """Public helper that delegates to the shared publisher instance."""

    notification_publisher.dispatch(notification, recipients)


__all__ = [
    "NotificationPublisher",
    "notification_publisher",
    "dispatch_notification",
    "serialize_delivery",
    "serialize_notification",
]
