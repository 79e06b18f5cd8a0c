"""Producer helpers used by portal workflows to emit notifications."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy.orm import Session

from notifyhub.domain.entities import RoleTarget

from .create_notification import NotificationFanOut, create_notification

_STAFF_ROLES = (RoleTarget.ADMIN, RoleTarget.HR)


def notify_announcement_published(
    session: Session,
    *,
    announcement_id: int,
    title: str,
    role_targets: Iterable[object] | None = None,
) -> NotificationFanOut:
    """Announce a new post to its audience.

    An empty role selection on an announcement means everyone, so it is
    sent as an explicit ``EVERYONE`` target.
    """

    targets = RoleTarget.parse_many(role_targets)
    if not targets:
        targets = frozenset({RoleTarget.EVERYONE})
    return create_notification(
        session,
        message=title,
        role_targets=targets,
        target_url=f"/announcements/{announcement_id}",
    )


def notify_leave_request_status_changed(
    session: Session,
    *,
    username: str,
    leave_request_id: int,
    status: str,
) -> NotificationFanOut:
    """Tell the requester that their leave request was approved or rejected."""

    return create_notification(
        session,
        message=f"Your leave request was {status.strip().lower()}",
        recipient_username=username,
        target_url=f"/leave?requestId={leave_request_id}",
    )


def notify_document_reviewed(
    session: Session,
    *,
    username: str,
    document_name: str,
    approved: bool,
) -> NotificationFanOut:
    outcome = "approved" if approved else "rejected"
    return create_notification(
        session,
        message=f'Your document "{document_name}" was {outcome} by HR',
        recipient_username=username,
        target_url="/documents",
    )


def notify_attendance_recorded(
    session: Session,
    *,
    username: str,
    record_id: int,
    checked_in: bool,
) -> NotificationFanOut:
    action = "checked in" if checked_in else "checked out"
    return create_notification(
        session,
        message=f"User {username} just {action}",
        role_targets=_STAFF_ROLES,
        target_url=f"/hr/attendance?recordId={record_id}",
    )


def notify_user_updated(
    session: Session,
    *,
    username: str,
    updated_by: str,
    audit_log_id: int | None = None,
) -> NotificationFanOut:
    target_url = f"/activity?highlightLog={audit_log_id}" if audit_log_id else "/activity"
    return create_notification(
        session,
        message=f'User "{username}" was updated by {updated_by}',
        role_targets=(RoleTarget.ADMIN,),
        target_url=target_url,
    )


__all__ = [
    "notify_announcement_published",
    "notify_attendance_recorded",
    "notify_document_reviewed",
    "notify_leave_request_status_changed",
    "notify_user_updated",
]
