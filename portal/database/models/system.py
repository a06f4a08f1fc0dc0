import uuid

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID

from portal.database.config.db import Base
from portal.database.models.registration import utcnow


class SystemSettings(Base):
    """Single-row registration window configuration."""
    __tablename__ = "system_settings"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    current_academic_year = Column(String(50), nullable=False, default="2025/2026")
    current_session = Column(String(100), nullable=False, default="March - June")
    is_registration_open = Column(Boolean, nullable=False, default=True)
    updated_by = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)
