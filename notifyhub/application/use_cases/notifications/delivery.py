"""Gateway use cases serving a caller's own notification feed."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Iterable

from sqlalchemy.orm import Session

from notifyhub.domain.entities import Identity, NotificationDelivery
from notifyhub.domain.exceptions import (
    AuthenticationRequiredError,
    NotificationValidationError,
)
from notifyhub.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)


def _require_identity(identity: Identity | None) -> Identity:
    if identity is None:
        raise AuthenticationRequiredError("An authenticated identity is required")
    return identity


def normalize_notification_ids(notification_ids: Iterable[object] | None) -> list[int]:
    """Return positive integer ids without duplicates, preserving order.

    Raises :class:`NotificationValidationError` for an empty list or any
    element that is not a positive integer.
    """

    if notification_ids is None or isinstance(notification_ids, (str, bytes)):
        raise NotificationValidationError("Notification ids must be a list")
    unique: list[int] = []
    seen: set[int] = set()
    for raw in notification_ids:
        if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
            raise NotificationValidationError(f"Invalid notification id: {raw!r}")
        if raw in seen:
            continue
        seen.add(raw)
        unique.append(raw)
    if not unique:
        raise NotificationValidationError("At least one notification id is required")
    return unique


def list_unread_notifications(
    session: Session, *, identity: Identity | None, limit: int | None = None
) -> Sequence[NotificationDelivery]:
    caller = _require_identity(identity)
    return NotificationRepository(session).find_unread_for_user(caller.user_id, limit=limit)


def list_notifications(
    session: Session,
    *,
    identity: Identity | None,
    only_unread: bool = False,
    limit: int | None = None,
) -> Sequence[NotificationDelivery]:
    """Return the caller's feed, newest first."""

    caller = _require_identity(identity)
    return NotificationRepository(session).find_all_for_user(
        caller.user_id, include_read=not only_unread, limit=limit
    )


def count_unread_notifications(session: Session, *, identity: Identity | None) -> int:
    caller = _require_identity(identity)
    return NotificationRepository(session).count_unread_for_user(caller.user_id)


def mark_notifications_read(
    session: Session,
    *,
    identity: Identity | None,
    notification_ids: Iterable[object] | None,
) -> int:
    """Mark the caller's deliveries for ``notification_ids`` as read.

    Ids the caller does not own, or already read, are ignored. The return
    value is the number of deliveries that changed state.
    """

    caller = _require_identity(identity)
    ids = normalize_notification_ids(notification_ids)
    updated = NotificationRepository(session).mark_read(caller.user_id, ids)
    logger.debug(
        "User %s marked %s of %s notifications read", caller.user_id, updated, len(ids)
    )
    return updated


def mark_all_notifications_read(session: Session, *, identity: Identity | None) -> int:
    caller = _require_identity(identity)
    return NotificationRepository(session).mark_all_read(caller.user_id)


__all__ = [
    "count_unread_notifications",
    "list_notifications",
    "list_unread_notifications",
    "mark_all_notifications_read",
    "mark_notifications_read",
    "normalize_notification_ids",
]
