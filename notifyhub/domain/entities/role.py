"""Domain enumerations describing user roles and notification role targets."""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from notifyhub.domain.exceptions import NotificationValidationError


class Role(str, Enum):
    """Role assigned to every user of the portal."""

    ADMIN = "ADMIN"
    HR = "HR"
    EMPLOYEE = "EMPLOYEE"

    @classmethod
    def parse(cls, value: str) -> "Role":
        """Return the role named by ``value`` or raise ``NotificationValidationError``."""

        target = RoleTarget.parse(value)
        if target is RoleTarget.EVERYONE:
            raise NotificationValidationError("EVERYONE is not an assignable role")
        return cls(target.value)


class RoleTarget(str, Enum):
    """Audience selector used when addressing a notification.

    ``EVERYONE`` is virtual: it is never stored on a user and expands to the
    whole directory at fan-out time.
    """

    ADMIN = "ADMIN"
    HR = "HR"
    EMPLOYEE = "EMPLOYEE"
    EVERYONE = "EVERYONE"

    @classmethod
    def parse(cls, value: object) -> "RoleTarget":
        """Parse a free-form value, rejecting anything that is not a known target."""

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise NotificationValidationError(f"Invalid role target: {value!r}")
        normalized = value.strip().upper()
        try:
            return cls(normalized)
        except ValueError as exc:
            raise NotificationValidationError(f"Unknown role target: {value!r}") from exc

    @classmethod
    def parse_many(cls, values: Iterable[object] | None) -> frozenset["RoleTarget"]:
        if values is None:
            return frozenset()
        if isinstance(values, (str, bytes)):
            raise NotificationValidationError("Role targets must be a list of role names")
        return frozenset(cls.parse(value) for value in values)

    @property
    def role(self) -> Role | None:
        """Return the concrete role for this target, ``None`` for ``EVERYONE``."""

        if self is RoleTarget.EVERYONE:
            return None
        return Role(self.value)


EVERYONE = RoleTarget.EVERYONE


__all__ = ["Role", "RoleTarget", "EVERYONE"]
