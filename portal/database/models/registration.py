import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Column, String, DateTime, Text, Integer, JSON,
    ForeignKey, Enum as SQLEnum, Index, text
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from portal.database.config.db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# ==================== ENUMS ====================

class SubmissionStatus(str, Enum):
    """Approval stage of a registration submission."""
    PENDING_YEAR_LEADER = "pending_year_leader"
    PENDING_FINANCE = "pending_finance"
    PENDING_REGISTRAR = "pending_registrar"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (SubmissionStatus.APPROVED, SubmissionStatus.REJECTED)


PENDING_STATUSES = (
    SubmissionStatus.PENDING_YEAR_LEADER,
    SubmissionStatus.PENDING_FINANCE,
    SubmissionStatus.PENDING_REGISTRAR,
)


class ApprovalAction(str, Enum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


# Used by the partial unique index below; must match SubmissionStatus values
_PENDING_SQL = "status IN ('pending_year_leader', 'pending_finance', 'pending_registrar')"


# ==================== MODELS ====================

class Submission(Base):
    """One student's registration request for a semester."""
    __tablename__ = "submissions"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )

    # ==================== OWNERSHIP ====================
    student_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    faculty_id = Column(
        UUID(as_uuid=True),
        ForeignKey("faculties.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    program_id = Column(
        UUID(as_uuid=True),
        ForeignKey("programs.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # ==================== PERIOD ====================
    semester = Column(String(50), nullable=False)
    academic_year = Column(String(50), nullable=False)
    year_level = Column(Integer, nullable=False)
    enrollment_intake = Column(String(50), nullable=True)

    # Snapshot of selected modules at submission time
    # Format: [{"id": "...", "name": "...", "code": "...", "credits": 3}]
    modules = Column(JSON, nullable=False)

    # ==================== STATUS ====================
    status = Column(
        SQLEnum(SubmissionStatus, name="submissionstatus", values_callable=_enum_values),
        nullable=False,
        default=SubmissionStatus.PENDING_YEAR_LEADER,
        index=True,
    )

    # ==================== METADATA ====================
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # ==================== RELATIONSHIPS ====================
    student = relationship("User", foreign_keys=[student_id])
    faculty = relationship("Faculty", foreign_keys=[faculty_id])
    program = relationship("Program", foreign_keys=[program_id])
    approval_logs = relationship(
        "ApprovalLog",
        back_populates="submission",
        order_by="ApprovalLog.id",
    )
    documents = relationship("RegistrationDocument", back_populates="submission")

    # ==================== INDEXES ====================
    __table_args__ = (
        Index('ix_submission_faculty_status', 'faculty_id', 'status'),
        Index('ix_submission_student_period', 'student_id', 'semester', 'academic_year'),
        Index(
            'uq_submission_active_period',
            'student_id', 'semester', 'academic_year',
            unique=True,
            postgresql_where=text(_PENDING_SQL),
            sqlite_where=text(_PENDING_SQL),
        ),
    )


class ApprovalLog(Base):
    """Append-only audit trail of submission and approval events."""
    __tablename__ = "approval_logs"

    # Integer key gives a stable insertion order within one timestamp
    id = Column(Integer, primary_key=True, autoincrement=True)

    submission_id = Column(
        UUID(as_uuid=True),
        ForeignKey("submissions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    action = Column(
        SQLEnum(ApprovalAction, name="approvalaction", values_callable=_enum_values),
        nullable=False,
    )
    comments = Column(Text, nullable=True)

    from_status = Column(
        SQLEnum(SubmissionStatus, name="submissionstatus", values_callable=_enum_values),
        nullable=True,  # Null for the SUBMITTED entry
    )
    to_status = Column(
        SQLEnum(SubmissionStatus, name="submissionstatus", values_callable=_enum_values),
        nullable=False,
    )

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # ==================== RELATIONSHIPS ====================
    submission = relationship("Submission", back_populates="approval_logs")
    user = relationship("User", foreign_keys=[user_id])

    @property
    def actor_name(self):
        return self.user.full_name if self.user else None

    @property
    def actor_role(self):
        return self.user.role if self.user else None

    __table_args__ = (
        Index('ix_approval_log_submission_created', 'submission_id', 'created_at'),
    )


class RegistrationDocument(Base):
    """Confirmation slip uploaded by the registrar for an approved submission."""
    __tablename__ = "registration_documents"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    submission_id = Column(
        UUID(as_uuid=True),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # ==================== FILE INFORMATION ====================
    file_name = Column(String(255), nullable=False)
    storage_key = Column(String(500), nullable=False, unique=True)
    file_size_bytes = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False, default="application/pdf")

    uploaded_by = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # ==================== RELATIONSHIPS ====================
    submission = relationship("Submission", back_populates="documents")
    uploader = relationship("User", foreign_keys=[uploaded_by])
