"""Domain entity representing a directory user."""

from dataclasses import dataclass

from .role import Role


@dataclass
class User:
    """Directory attributes needed to address notifications."""

    id: int | None
    username: str
    role: Role
    is_active: bool = True


__all__ = ["User"]
