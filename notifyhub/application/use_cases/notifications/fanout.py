"""Resolve notification audiences into recipient user ids and fan out deliveries."""

from __future__ import annotations

import logging
from typing import Iterable, Protocol

from sqlalchemy.orm import Session

from notifyhub.domain.entities import Notification, NotificationTarget, RoleTarget
from notifyhub.domain.exceptions import NotificationValidationError
from notifyhub.infrastructure.notifications import dispatch_notification
from notifyhub.infrastructure.repositories import NotificationRepository, UserRepository

logger = logging.getLogger(__name__)


class UserDirectory(Protocol):
    """Lookups the resolver needs from the user directory."""

    def get_id_by_username(self, username: str) -> int | None: ...

    def list_ids_by_roles(self, roles: Iterable) -> set[int]: ...

    def list_all_ids(self) -> set[int]: ...


def build_target(
    *,
    recipient_username: str | None = None,
    role_targets: Iterable[object] | None = None,
) -> NotificationTarget:
    """Validate producer input and return a :class:`NotificationTarget`.

    Role names are parsed strictly; an unknown name raises
    :class:`NotificationValidationError` instead of being dropped.
    """

    if recipient_username is not None and not isinstance(recipient_username, str):
        raise NotificationValidationError("recipient_username must be a string")
    username = (recipient_username or "").strip() or None
    return NotificationTarget(
        recipient_username=username,
        role_targets=RoleTarget.parse_many(role_targets),
    )


def resolve_recipients(directory: UserDirectory, target: NotificationTarget) -> set[int]:
    """Return the deduplicated ids of every user addressed by ``target``.

    An unknown recipient username contributes nothing. A target with neither
    a username nor role targets resolves to an empty set.
    """

    recipients: set[int] = set()

    if target.recipient_username:
        user_id = directory.get_id_by_username(target.recipient_username)
        if user_id is None:
            logger.info(
                "Notification recipient %s not found in directory",
                target.recipient_username,
            )
        else:
            recipients.add(user_id)

    if target.is_broadcast:
        recipients |= directory.list_all_ids()
    else:
        roles = {role_target.role for role_target in target.role_targets}
        roles.discard(None)
        if roles:
            recipients |= directory.list_ids_by_roles(roles)

    return recipients


def fan_out_notification(session: Session, notification_id: int) -> int:
    """(Re)deliver an existing notification to its resolved audience.

    Safe to call repeatedly: deliveries that already exist are skipped, so a
    retried fan-out only fills in what a failed attempt left out. Returns the
    number of deliveries created by this call.
    """

    repository = NotificationRepository(session)
    notification = repository.get(notification_id)
    if notification is None:
        raise NotificationValidationError(f"Notification {notification_id} does not exist")
    recipients = resolve_recipients(UserRepository(session), notification.target)
    return deliver(session, notification, recipients)


def deliver(session: Session, notification: Notification, recipients: set[int]) -> int:
    """Insert the deliveries for ``recipients`` and push them to live subscribers."""

    if not recipients:
        logger.info("Notification %s resolved to no recipients", notification.id)
        return 0
    inserted = NotificationRepository(session).create_user_notifications(
        notification.id, recipients
    )
    if inserted:
        dispatch_notification(notification, recipients)
    return inserted


__all__ = [
    "UserDirectory",
    "build_target",
    "deliver",
    "fan_out_notification",
    "resolve_recipients",
]
