"""SQLAlchemy model for the user directory table."""

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String, func

from notifyhub.domain.entities import Role
from notifyhub.infrastructure.database import Base


class UserModel(Base):
    """Database representation of a portal user as seen by the directory."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    role = Column(
        Enum(Role, name="user_role", native_enum=False, validate_strings=True),
        nullable=False,
        index=True,
    )
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


__all__ = ["UserModel"]
