"""Client-side polling contract for notification delivery."""

from .gateway_client import (
    GatewayError,
    NotificationGatewayClient,
    PolledNotification,
    TransientGatewayError,
)
from .poller import NotificationGateway, NotificationPoller, Presenter

__all__ = [
    "GatewayError",
    "NotificationGateway",
    "NotificationGatewayClient",
    "NotificationPoller",
    "PolledNotification",
    "Presenter",
    "TransientGatewayError",
]
