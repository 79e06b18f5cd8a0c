"""Tests for the notification store."""

from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from notifyhub.domain.entities import Notification, RoleTarget
from notifyhub.domain.exceptions import NotificationValidationError, TransientStoreError
from notifyhub.infrastructure.models import UserNotificationModel
from notifyhub.infrastructure.repositories import NotificationRepository

SAME_INSTANT = datetime(2024, 5, 1, 9, 30, 0)


def _create(repository: NotificationRepository, message: str, **kwargs) -> Notification:
    return repository.create(Notification(id=None, message=message, **kwargs))


def test_create_rejects_empty_message(session) -> None:
    repository = NotificationRepository(session)

    with pytest.raises(NotificationValidationError):
        _create(repository, "")
    with pytest.raises(NotificationValidationError):
        _create(repository, "  \n ")


def test_create_persists_role_targets_and_target_url(session) -> None:
    repository = NotificationRepository(session)

    created = _create(
        repository,
        "Quarterly review",
        target_url="/announcements/4",
        role_targets=[RoleTarget.HR, RoleTarget.ADMIN],
    )
    loaded = repository.get(created.id)

    assert loaded.message == "Quarterly review"
    assert loaded.target_url == "/announcements/4"
    assert loaded.role_targets == [RoleTarget.ADMIN, RoleTarget.HR]
    assert loaded.created_at is not None


def test_create_user_notifications_is_idempotent(session, make_user) -> None:
    alice = make_user("alice")
    bob = make_user("bob")
    repository = NotificationRepository(session)
    notification = _create(repository, "Welcome")

    assert repository.create_user_notifications(notification.id, [alice, bob, alice]) == 2
    assert repository.create_user_notifications(notification.id, [alice, bob]) == 0
    assert repository.create_user_notifications(notification.id, []) == 0

    rows = session.query(UserNotificationModel).all()
    assert sorted((row.user_id, row.notification_id) for row in rows) == [
        (alice, notification.id),
        (bob, notification.id),
    ]


def test_unread_feed_is_newest_first_with_id_tiebreak(session, make_user) -> None:
    alice = make_user("alice")
    repository = NotificationRepository(session)
    older = _create(repository, "older", created_at=datetime(2024, 4, 30, 8, 0, 0))
    first_tie = _create(repository, "tie one", created_at=SAME_INSTANT)
    second_tie = _create(repository, "tie two", created_at=SAME_INSTANT)
    for notification in (older, first_tie, second_tie):
        repository.create_user_notifications(notification.id, [alice])

    feed = repository.find_unread_for_user(alice)

    assert [delivery.id for delivery in feed] == [second_tie.id, first_tie.id, older.id]
    assert all(not delivery.is_read for delivery in feed)


def test_find_unread_returns_exactly_unread_rows_for_user(session, make_user) -> None:
    alice = make_user("alice")
    bob = make_user("bob")
    repository = NotificationRepository(session)
    shared = _create(repository, "shared")
    mine = _create(repository, "mine")
    repository.create_user_notifications(shared.id, [alice, bob])
    repository.create_user_notifications(mine.id, [alice])
    repository.mark_read(alice, [shared.id])

    assert [delivery.id for delivery in repository.find_unread_for_user(alice)] == [mine.id]
    assert [delivery.id for delivery in repository.find_unread_for_user(bob)] == [shared.id]
    assert repository.count_unread_for_user(alice) == 1


def test_find_all_for_user_honours_read_filter(session, make_user) -> None:
    alice = make_user("alice")
    repository = NotificationRepository(session)
    first = _create(repository, "first", created_at=datetime(2024, 1, 1))
    second = _create(repository, "second", created_at=datetime(2024, 1, 2))
    repository.create_user_notifications(first.id, [alice])
    repository.create_user_notifications(second.id, [alice])
    repository.mark_read(alice, [first.id])

    everything = repository.find_all_for_user(alice)
    unread_only = repository.find_all_for_user(alice, include_read=False)
    limited = repository.find_all_for_user(alice, limit=1)

    assert [(d.id, d.is_read) for d in everything] == [(second.id, False), (first.id, True)]
    assert [d.id for d in unread_only] == [second.id]
    assert [d.id for d in limited] == [second.id]


def test_mark_read_only_touches_callers_rows(session, make_user) -> None:
    alice = make_user("alice")
    bob = make_user("bob")
    repository = NotificationRepository(session)
    n1 = _create(repository, "for alice")
    n2 = _create(repository, "for bob")
    repository.create_user_notifications(n1.id, [alice])
    repository.create_user_notifications(n2.id, [bob])

    assert repository.mark_read(alice, [n1.id, n2.id]) == 1

    session.expire_all()
    states = {
        (row.user_id, row.notification_id): row.is_read
        for row in session.query(UserNotificationModel).all()
    }
    assert states == {(alice, n1.id): True, (bob, n2.id): False}


def test_mark_read_of_foreign_id_changes_nothing(session, make_user) -> None:
    alice = make_user("alice")
    bob = make_user("bob")
    repository = NotificationRepository(session)
    notification = _create(repository, "for bob")
    repository.create_user_notifications(notification.id, [bob])

    assert repository.mark_read(alice, [notification.id]) == 0
    assert repository.mark_read(alice, [12345]) == 0
    assert repository.count_unread_for_user(bob) == 1


def test_read_state_is_monotonic(session, make_user) -> None:
    alice = make_user("alice")
    repository = NotificationRepository(session)
    notification = _create(repository, "hello")
    repository.create_user_notifications(notification.id, [alice])

    assert repository.mark_read(alice, [notification.id]) == 1
    first_read_at = repository.find_all_for_user(alice)[0].user_notification.read_at

    assert repository.mark_read(alice, [notification.id]) == 0
    assert repository.mark_all_read(alice) == 0
    assert repository.create_user_notifications(notification.id, [alice]) == 0

    delivery = repository.find_all_for_user(alice)[0]
    assert delivery.is_read is True
    assert delivery.user_notification.read_at == first_read_at


def test_mark_all_read_counts_only_unread_rows(session, make_user) -> None:
    alice = make_user("alice")
    repository = NotificationRepository(session)
    for message in ("a", "b", "c"):
        notification = _create(repository, message)
        repository.create_user_notifications(notification.id, [alice])
    repository.mark_read(alice, [1])

    assert repository.mark_all_read(alice) == 2
    assert repository.count_unread_for_user(alice) == 0


def test_io_failures_surface_as_transient_errors(session, make_user, monkeypatch) -> None:
    alice = make_user("alice")
    repository = NotificationRepository(session)
    notification = _create(repository, "hello")

    def _boom(*_args, **_kwargs):
        raise OperationalError("UPDATE user_notification", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "commit", _boom)

    with pytest.raises(TransientStoreError):
        repository.create_user_notifications(notification.id, [alice])
    with pytest.raises(TransientStoreError):
        repository.mark_read(alice, [notification.id])
