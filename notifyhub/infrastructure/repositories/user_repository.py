"""Persistence layer for the user directory."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.orm import Session

from notifyhub.domain.entities import Role, User
from notifyhub.infrastructure.models import UserModel

from .errors import translate_store_errors


class UserRepository:
    """Directory lookups consumed by the fan-out resolver.

    Only active users are visible through the directory.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_username(self, username: str) -> User | None:
        with self._store_errors():
            model = (
                self.session.query(UserModel)
                .filter(UserModel.is_active.is_(True))
                .filter(UserModel.username == username)
                .first()
            )
        return self._to_entity(model) if model else None

    def get_id_by_username(self, username: str) -> int | None:
        with self._store_errors():
            row = (
                self.session.query(UserModel.id)
                .filter(UserModel.username == username)
                .filter(UserModel.is_active.is_(True))
                .first()
            )
        return row[0] if row else None

    def list_ids_by_roles(self, roles: Iterable[Role]) -> set[int]:
        wanted = {Role(role) for role in roles}
        if not wanted:
            return set()
        with self._store_errors():
            rows = (
                self.session.query(UserModel.id)
                .filter(UserModel.is_active.is_(True))
                .filter(UserModel.role.in_(wanted))
                .all()
            )
        return {user_id for (user_id,) in rows}

    def list_all_ids(self) -> set[int]:
        with self._store_errors():
            rows = self.session.query(UserModel.id).filter(UserModel.is_active.is_(True)).all()
        return {user_id for (user_id,) in rows}

    def create(self, user: User) -> User:
        model = UserModel(
            username=user.username,
            role=user.role,
            is_active=user.is_active,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def _store_errors(self):
        return translate_store_errors(self.session, "User directory")

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            username=model.username,
            role=Role(model.role),
            is_active=model.is_active,
        )


__all__ = ["UserRepository"]
