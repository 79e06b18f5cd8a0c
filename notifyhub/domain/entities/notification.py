"""Domain entities for notifications and their per-recipient deliveries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .role import RoleTarget


@dataclass(frozen=True)
class NotificationTarget:
    """Audience of a notification: an optional username plus role targets."""

    recipient_username: str | None = None
    role_targets: frozenset[RoleTarget] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.recipient_username and not self.role_targets

    @property
    def is_broadcast(self) -> bool:
        return RoleTarget.EVERYONE in self.role_targets


@dataclass
class Notification:
    """Message created once by a producer and never mutated afterwards."""

    id: int | None
    message: str
    target_url: str | None = None
    role_targets: list[RoleTarget] = field(default_factory=list)
    recipient_username: str | None = None
    created_at: datetime | None = None

    @property
    def target(self) -> NotificationTarget:
        """Return the audience this notification was addressed to."""

        return NotificationTarget(
            recipient_username=self.recipient_username,
            role_targets=frozenset(self.role_targets),
        )


@dataclass
class UserNotification:
    """Delivery of a notification to one recipient, carrying its read state."""

    id: int | None
    user_id: int
    notification_id: int
    is_read: bool = False
    created_at: datetime | None = None
    read_at: datetime | None = None


@dataclass(frozen=True)
class NotificationDelivery:
    """Read-side pair returned by the store for a recipient's feed."""

    notification: Notification
    user_notification: UserNotification

    @property
    def id(self) -> int:
        return self.notification.id or 0

    @property
    def is_read(self) -> bool:
        return self.user_notification.is_read


__all__ = [
    "Notification",
    "NotificationDelivery",
    "NotificationTarget",
    "UserNotification",
]
