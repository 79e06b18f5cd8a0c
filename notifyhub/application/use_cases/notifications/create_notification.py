"""Use case for creating a notification and fanning it out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy.orm import Session

from notifyhub.domain.entities import Notification
from notifyhub.domain.exceptions import NotificationValidationError
from notifyhub.infrastructure.repositories import NotificationRepository, UserRepository
from notifyhub.utils import now_in_app_timezone

from .fanout import build_target, deliver, resolve_recipients

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationFanOut:
    """Outcome of a creation request."""

    notification: Notification
    recipient_ids: frozenset[int]
    delivered_count: int


def create_notification(
    session: Session,
    *,
    message: str,
    role_targets: Iterable[object] | None = None,
    recipient_username: str | None = None,
    target_url: str | None = None,
) -> NotificationFanOut:
    """Persist a notification and create one unread delivery per recipient.

    Input is validated and the audience resolved before anything is
    written. If writing the deliveries fails, the notification already
    exists and :func:`fan_out_notification` can be called with its id.
    """

    if not isinstance(message, str) or not message.strip():
        raise NotificationValidationError("Notification message must not be empty")
    target = build_target(
        recipient_username=recipient_username, role_targets=role_targets
    )
    recipients = resolve_recipients(UserRepository(session), target)

    notification = NotificationRepository(session).create(
        Notification(
            id=None,
            message=message.strip(),
            target_url=(target_url or "").strip() or None,
            role_targets=sorted(target.role_targets, key=lambda item: item.value),
            recipient_username=target.recipient_username,
            created_at=now_in_app_timezone(),
        )
    )
    delivered = deliver(session, notification, recipients)
    logger.info(
        "Notification %s created for %s recipients (%s deliveries inserted)",
        notification.id,
        len(recipients),
        delivered,
    )
    return NotificationFanOut(
        notification=notification,
        recipient_ids=frozenset(recipients),
        delivered_count=delivered,
    )


__all__ = ["NotificationFanOut", "create_notification"]
