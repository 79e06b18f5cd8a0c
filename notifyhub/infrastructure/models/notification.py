"""SQLAlchemy models for notifications and per-recipient deliveries."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression

from notifyhub.infrastructure.database import Base
from notifyhub.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Immutable notification content shared by every recipient."""

    __tablename__ = "notification"

    id = Column(Integer, primary_key=True, index=True)
    message = Column(Text, nullable=False)
    target_url = Column(String(500), nullable=True)
    role_targets = Column(JSON, nullable=False, default=list)
    recipient_username = Column(String(50), nullable=True)
    created_at = Column(
        DateTime(), nullable=False, default=now_in_app_naive_datetime, index=True
    )

    deliveries = relationship(
        "UserNotificationModel",
        back_populates="notification",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class UserNotificationModel(Base):
    """Delivery of a notification to one user; the only mutable record."""

    __tablename__ = "user_notification"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "notification_id", name="uq_user_notification_user_notification"
        ),
        Index("ix_user_notification_user_is_read", "user_id", "is_read"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    notification_id = Column(
        Integer,
        ForeignKey("notification.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_read = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    read_at = Column(DateTime(), nullable=True)

    notification = relationship("NotificationModel", back_populates="deliveries")


__all__ = ["NotificationModel", "UserNotificationModel"]
