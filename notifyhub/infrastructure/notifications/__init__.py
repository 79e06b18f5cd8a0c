"""Realtime notification helpers for the infrastructure layer."""

from .manager import ConnectionRegistry, connection_registry
from .publisher import (
    NotificationPublisher,
    dispatch_notification,
    notification_publisher,
    serialize_delivery,
    serialize_notification,
)

__all__ = [
    "ConnectionRegistry",
    "connection_registry",
    "NotificationPublisher",
    "notification_publisher",
    "dispatch_notification",
    "serialize_delivery",
    "serialize_notification",
]
