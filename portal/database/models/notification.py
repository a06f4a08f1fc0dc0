import uuid
from enum import Enum

from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, Enum as SQLEnum, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from portal.database.config.db import Base
from portal.database.models.registration import utcnow


class NotificationSeverity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notification(Base):
    """In-app notification shown on a user's dashboard."""
    __tablename__ = "notifications"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    severity = Column(
        SQLEnum(
            NotificationSeverity,
            name="notificationseverity",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=NotificationSeverity.INFO,
    )
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User")

    __table_args__ = (
        Index('ix_notification_user_read', 'user_id', 'read'),
    )
