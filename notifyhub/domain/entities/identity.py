"""Verified caller identity supplied by the authentication collaborator."""

from dataclasses import dataclass

from .role import Role


@dataclass(frozen=True)
class Identity:
    """Authenticated principal on whose behalf the gateway operates."""

    user_id: int
    username: str
    role: Role

    def can_publish(self) -> bool:
        """Return ``True`` when the identity may create notifications directly."""

        return self.role in (Role.ADMIN, Role.HR)


__all__ = ["Identity"]
