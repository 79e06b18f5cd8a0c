"""Domain entities exposed by the application."""

from .identity import Identity
from .notification import (
    Notification,
    NotificationDelivery,
    NotificationTarget,
    UserNotification,
)
from .role import EVERYONE, Role, RoleTarget
from .user import User

__all__ = [
    "EVERYONE",
    "Identity",
    "Notification",
    "NotificationDelivery",
    "NotificationTarget",
    "Role",
    "RoleTarget",
    "User",
    "UserNotification",
]
