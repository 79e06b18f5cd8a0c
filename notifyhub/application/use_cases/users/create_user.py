"""Use case for registering users in the notification directory."""

from sqlalchemy.orm import Session

from notifyhub.domain.entities import Role, User
from notifyhub.infrastructure.repositories import UserRepository


def create_user(
    session: Session,
    *,
    username: str,
    role: str | Role,
    is_active: bool = True,
) -> User:
    """Create a directory user ensuring unique usernames.

    ``role`` is parsed strictly; unknown role names raise ``ValueError``.
    """

    normalized = username.strip()
    if not normalized:
        raise ValueError("Username must not be empty")

    repository = UserRepository(session)
    if repository.get_by_username(normalized):
        raise ValueError(f"Username {normalized!r} is already registered")

    parsed_role = role if isinstance(role, Role) else Role.parse(role)
    return repository.create(
        User(id=None, username=normalized, role=parsed_role, is_active=is_active)
    )
