"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field, StrictInt, field_validator

from notifyhub.domain.entities import NotificationDelivery, RoleTarget

NotificationId = Annotated[StrictInt, Field(gt=0)]


class NotificationItem(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    message: str
    created_at: datetime
    is_read: bool
    target_url: str | None = None

    @classmethod
    def from_delivery(cls, delivery: NotificationDelivery) -> "NotificationItem":
        notification = delivery.notification
        return cls(
            id=notification.id or 0,
            message=notification.message,
            created_at=notification.created_at,
            is_read=delivery.is_read,
            target_url=notification.target_url,
        )


class NotificationMarkReadRequest(BaseModel):
    """Payload used to mark a batch of notifications as read."""

    ids: list[NotificationId] = Field(
        ..., min_length=1, description="Notification identifiers owned by the caller"
    )


class NotificationMarkReadResponse(BaseModel):
    updated_count: int


class NotificationUnreadCount(BaseModel):
    unread_count: int


class NotificationCreate(BaseModel):
    """Producer request creating a notification and fanning it out."""

    message: str = Field(..., min_length=1, max_length=2000)
    target_url: str | None = Field(default=None, max_length=500)
    role_targets: list[RoleTarget] = Field(default_factory=list)
    recipient_username: str | None = Field(default=None, max_length=50)

    @field_validator("role_targets", mode="before")
    @classmethod
    def _parse_role_targets(cls, value: object) -> list[RoleTarget]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("role_targets must be a list of role names")
        return sorted(RoleTarget.parse_many(value), key=lambda item: item.value)

    @field_validator("message")
    @classmethod
    def _reject_blank_message(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value


class NotificationCreateResponse(BaseModel):
    notification: NotificationItem
    delivered_count: int


__all__ = [
    "NotificationCreate",
    "NotificationCreateResponse",
    "NotificationItem",
    "NotificationMarkReadRequest",
    "NotificationMarkReadResponse",
    "NotificationUnreadCount",
]
