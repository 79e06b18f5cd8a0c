from .notification import (
    NotificationCreate,
    NotificationCreateResponse,
    NotificationItem,
    NotificationMarkReadRequest,
    NotificationMarkReadResponse,
    NotificationUnreadCount,
)

__all__ = [
    "NotificationCreate",
    "NotificationCreateResponse",
    "NotificationItem",
    "NotificationMarkReadRequest",
    "NotificationMarkReadResponse",
    "NotificationUnreadCount",
]
