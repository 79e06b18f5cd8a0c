"""Persistence helpers for notifications and their per-recipient deliveries."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from notifyhub.domain.entities import (
    Notification,
    NotificationDelivery,
    RoleTarget,
    UserNotification,
)
from notifyhub.domain.exceptions import NotificationValidationError
from notifyhub.infrastructure.models import NotificationModel, UserNotificationModel
from notifyhub.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_naive_datetime,
)

from .errors import translate_store_errors

logger = logging.getLogger(__name__)

# Four bound parameters per row keeps each statement below SQLite's variable cap.
_BULK_INSERT_CHUNK_SIZE = 200
_CONFLICT_ABSORBING_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class NotificationRepository:
    """Provide storage operations for :class:`Notification` and its deliveries."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, notification: Notification) -> Notification:
        message = (notification.message or "").strip()
        if not message:
            raise NotificationValidationError("Notification message must not be empty")

        model = NotificationModel(
            message=message,
            target_url=notification.target_url or None,
            role_targets=sorted(RoleTarget(target).value for target in notification.role_targets),
            recipient_username=notification.recipient_username or None,
            created_at=ensure_app_naive_datetime(notification.created_at)
            or now_in_app_naive_datetime(),
        )
        with self._store_errors():
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def get(self, notification_id: int) -> Notification | None:
        with self._store_errors():
            model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def create_user_notifications(
        self, notification_id: int, user_ids: Iterable[int]
    ) -> int:
        """Insert one unread delivery per user, skipping pairs that already exist.

        All rows are written in a single transaction. The return value counts
        only rows that were actually inserted, so calling this again with the
        same arguments returns ``0``.
        """

        recipients = sorted({int(user_id) for user_id in user_ids if user_id is not None})
        if not recipients:
            return 0

        dialect = self.session.get_bind().dialect.name
        insert_factory = _CONFLICT_ABSORBING_INSERTS.get(dialect)
        with self._store_errors():
            if insert_factory is not None:
                inserted = self._insert_ignoring_conflicts(
                    insert_factory, notification_id, recipients
                )
            else:
                inserted = self._insert_missing(notification_id, recipients)
        logger.debug(
            "Fan-out for notification %s inserted %s of %s deliveries",
            notification_id,
            inserted,
            len(recipients),
        )
        return inserted

    def find_unread_for_user(
        self, user_id: int, *, limit: int | None = None
    ) -> Sequence[NotificationDelivery]:
        return self.find_all_for_user(user_id, include_read=False, limit=limit)

    def find_all_for_user(
        self,
        user_id: int,
        include_read: bool = True,
        *,
        limit: int | None = None,
    ) -> Sequence[NotificationDelivery]:
        query = self._deliveries_query(user_id)
        if not include_read:
            query = query.filter(UserNotificationModel.is_read.is_(False))
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        with self._store_errors():
            rows = query.all()
        return [
            NotificationDelivery(
                notification=self._to_entity(notification_model),
                user_notification=self._delivery_to_entity(delivery_model),
            )
            for delivery_model, notification_model in rows
        ]

    def count_unread_for_user(self, user_id: int) -> int:
        with self._store_errors():
            return (
                self.session.query(func.count(UserNotificationModel.id))
                .filter(UserNotificationModel.user_id == user_id)
                .filter(UserNotificationModel.is_read.is_(False))
                .scalar()
                or 0
            )

    def mark_read(self, user_id: int, notification_ids: Iterable[int]) -> int:
        """Flag the caller's unread deliveries as read.

        Ids that belong to another user, do not exist or are already read
        match no row and therefore add nothing to the returned count.
        """

        ids = {int(notification_id) for notification_id in notification_ids}
        if not ids:
            return 0
        query = self.session.query(UserNotificationModel).filter(
            UserNotificationModel.user_id == user_id,
            UserNotificationModel.notification_id.in_(ids),
            UserNotificationModel.is_read.is_(False),
        )
        return self._flag_read(query)

    def mark_all_read(self, user_id: int) -> int:
        query = self.session.query(UserNotificationModel).filter(
            UserNotificationModel.user_id == user_id,
            UserNotificationModel.is_read.is_(False),
        )
        return self._flag_read(query)

    def _flag_read(self, query: Query) -> int:
        with self._store_errors():
            updated = query.update(
                {
                    UserNotificationModel.is_read: True,
                    UserNotificationModel.read_at: now_in_app_naive_datetime(),
                },
                synchronize_session=False,
            )
            self.session.commit()
        return int(updated or 0)

    def _deliveries_query(self, user_id: int) -> Query:
        return (
            self.session.query(UserNotificationModel, NotificationModel)
            .join(
                NotificationModel,
                UserNotificationModel.notification_id == NotificationModel.id,
            )
            .filter(UserNotificationModel.user_id == user_id)
        )

    def _insert_ignoring_conflicts(
        self, insert_factory, notification_id: int, recipients: list[int]
    ) -> int:
        created_at = now_in_app_naive_datetime()
        inserted = 0
        for start in range(0, len(recipients), _BULK_INSERT_CHUNK_SIZE):
            chunk = recipients[start : start + _BULK_INSERT_CHUNK_SIZE]
            statement = (
                insert_factory(UserNotificationModel)
                .values(
                    [
                        {
                            "user_id": user_id,
                            "notification_id": notification_id,
                            "is_read": False,
                            "created_at": created_at,
                        }
                        for user_id in chunk
                    ]
                )
                .on_conflict_do_nothing(index_elements=["user_id", "notification_id"])
                .returning(UserNotificationModel.id)
            )
            inserted += len(self.session.execute(statement).all())
        self.session.commit()
        return inserted

    def _insert_missing(self, notification_id: int, recipients: list[int]) -> int:
        # A concurrent fan-out may win the race between the lookup and the
        # insert; the unique constraint rejects the batch and the lookup runs again.
        for attempt in range(2):
            existing = {
                user_id
                for (user_id,) in self.session.query(UserNotificationModel.user_id)
                .filter(UserNotificationModel.notification_id == notification_id)
                .filter(UserNotificationModel.user_id.in_(recipients))
                .all()
            }
            missing = [user_id for user_id in recipients if user_id not in existing]
            if not missing:
                return 0
            created_at = now_in_app_naive_datetime()
            self.session.add_all(
                UserNotificationModel(
                    user_id=user_id,
                    notification_id=notification_id,
                    is_read=False,
                    created_at=created_at,
                )
                for user_id in missing
            )
            try:
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                if attempt:
                    raise
                continue
            return len(missing)
        return 0

    def _store_errors(self):
        return translate_store_errors(self.session, "Notification store")

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            message=model.message,
            target_url=model.target_url,
            role_targets=[RoleTarget(value) for value in (model.role_targets or [])],
            recipient_username=model.recipient_username,
            created_at=ensure_app_timezone(model.created_at),
        )

    @staticmethod
    def _delivery_to_entity(model: UserNotificationModel) -> UserNotification:
        return UserNotification(
            id=model.id,
            user_id=model.user_id,
            notification_id=model.notification_id,
            is_read=bool(model.is_read),
            created_at=ensure_app_timezone(model.created_at),
            read_at=ensure_app_timezone(model.read_at),
        )


__all__ = ["NotificationRepository"]
