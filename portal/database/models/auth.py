import uuid
import enum
from sqlalchemy import Column, String, Boolean, DateTime, Integer, ForeignKey, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from portal.database.config.db import Base


class UserRole(str, enum.Enum):
    """User role enumeration."""

    STUDENT = "student"
    YEAR_LEADER = "year_leader"
    FINANCE_OFFICER = "finance_officer"
    REGISTRAR = "registrar"
    SYSTEM_ADMIN = "system_admin"


class User(Base):
    __tablename__ = "users"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String(150), nullable=False)
    password_hash = Column(String, nullable=False)
    verified = Column(Boolean, default=True)
    role = Column(
        Enum(*[e.value for e in UserRole], name="user_role"),
        nullable=False,
        default=UserRole.STUDENT.value,
        index=True,
    )
    # Staff are scoped by faculty; students belong to one faculty and program
    faculty_id = Column(
        UUID(as_uuid=True),
        ForeignKey("faculties.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    program_id = Column(
        UUID(as_uuid=True),
        ForeignKey("programs.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    student_number = Column(String(20), unique=True, nullable=True)
    current_year = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    faculty = relationship("Faculty", back_populates="users")
    program = relationship("Program")
