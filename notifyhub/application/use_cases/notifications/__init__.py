"""Use cases for creating, fanning out and serving notifications."""

from .create_notification import NotificationFanOut, create_notification
from .delivery import (
    count_unread_notifications,
    list_notifications,
    list_unread_notifications,
    mark_all_notifications_read,
    mark_notifications_read,
    normalize_notification_ids,
)
from .events import (
    notify_announcement_published,
    notify_attendance_recorded,
    notify_document_reviewed,
    notify_leave_request_status_changed,
    notify_user_updated,
)
from .fanout import build_target, fan_out_notification, resolve_recipients

__all__ = [
    "NotificationFanOut",
    "build_target",
    "count_unread_notifications",
    "create_notification",
    "fan_out_notification",
    "list_notifications",
    "list_unread_notifications",
    "mark_all_notifications_read",
    "mark_notifications_read",
    "normalize_notification_ids",
    "notify_announcement_published",
    "notify_attendance_recorded",
    "notify_document_reviewed",
    "notify_leave_request_status_changed",
    "notify_user_updated",
    "resolve_recipients",
]
