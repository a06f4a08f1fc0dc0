"""
Persistence contracts for the registration workflow.

The engine depends only on the ``SubmissionStore`` and ``ApprovalLogStore``
protocols. The SQLAlchemy implementations below share the caller's session,
so a status update and its log entry are flushed into the same transaction
and committed (or rolled back) together by ``portal.database.config.db.transaction``.
"""
import logging
from typing import List, Optional, Protocol
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from portal.database.models.auth import UserRole
from portal.database.models.registration import (
    ApprovalAction,
    ApprovalLog,
    PENDING_STATUSES,
    Submission,
    SubmissionStatus,
    utcnow,
)
from portal.exceptions import DuplicateSubmission, InvalidStage, Unauthorized

logger = logging.getLogger(__name__)

# Roles that see every submission
UNSCOPED_ROLES = (UserRole.FINANCE_OFFICER, UserRole.REGISTRAR, UserRole.SYSTEM_ADMIN)


class SubmissionStore(Protocol):
    def find_active(self, student_id: UUID, semester: str, academic_year: str) -> Optional[Submission]:
        ...

    def create(self, submission: Submission) -> Submission:
        ...

    def get(self, submission_id: UUID, for_update: bool = False) -> Optional[Submission]:
        ...

    def update_status(
        self, submission_id: UUID, expected: SubmissionStatus, new_status: SubmissionStatus
    ) -> Submission:
        ...

    def list_by_scope(
        self, role: UserRole, faculty_id: Optional[UUID], student_id: Optional[UUID]
    ) -> List[Submission]:
        ...


class ApprovalLogStore(Protocol):
    def append(
        self,
        submission_id: UUID,
        actor_id: UUID,
        action: ApprovalAction,
        comments: Optional[str],
        from_status: Optional[SubmissionStatus],
        to_status: SubmissionStatus,
    ) -> ApprovalLog:
        ...

    def list_for(self, submission_id: UUID) -> List[ApprovalLog]:
        ...


def check_scope(role: UserRole, faculty_id: Optional[UUID]) -> None:
    """A year leader without a faculty has no visible submissions at all."""
    if role == UserRole.YEAR_LEADER and faculty_id is None:
        raise Unauthorized("Staff member must be assigned to a faculty")


def is_visible(
    submission: Submission,
    role: UserRole,
    faculty_id: Optional[UUID],
    student_id: Optional[UUID],
) -> bool:
    """Visibility boundary shared by list and single-submission reads."""
    if role in UNSCOPED_ROLES:
        return True
    if role == UserRole.YEAR_LEADER:
        return faculty_id is not None and submission.faculty_id == faculty_id
    if role == UserRole.STUDENT:
        return student_id is not None and submission.student_id == student_id
    return False


class SqlSubmissionStore:
    def __init__(self, db: Session):
        self.db = db

    def find_active(self, student_id: UUID, semester: str, academic_year: str) -> Optional[Submission]:
        return (
            self.db.query(Submission)
            .filter(
                Submission.student_id == student_id,
                Submission.semester == semester,
                Submission.academic_year == academic_year,
                Submission.status.in_(PENDING_STATUSES),
            )
            .first()
        )

    def create(self, submission: Submission) -> Submission:
        self.db.add(submission)
        try:
            self.db.flush()
        except IntegrityError as e:
            # Lost the race against a concurrent submission for the same period
            if "unique" in str(e.orig).lower():
                raise DuplicateSubmission(
                    f"Registration already submitted for {submission.semester} {submission.academic_year}."
                ) from e
            raise
        return submission

    def get(self, submission_id: UUID, for_update: bool = False) -> Optional[Submission]:
        query = self.db.query(Submission).filter(Submission.id == submission_id)
        if for_update:
            # Row-level lock; a no-op on SQLite, where update_status' compare-and-swap still applies
            query = query.with_for_update()
        return query.first()

    def update_status(
        self, submission_id: UUID, expected: SubmissionStatus, new_status: SubmissionStatus
    ) -> Submission:
        updated = (
            self.db.query(Submission)
            .filter(Submission.id == submission_id, Submission.status == expected)
            .update(
                {Submission.status: new_status, Submission.updated_at: utcnow()},
                synchronize_session="fetch",
            )
        )
        if updated == 0:
            logger.info(
                "Compare-and-swap lost on submission %s (expected %s)", submission_id, expected.value
            )
            raise InvalidStage("This registration has already moved past the expected stage")

        submission = self.db.get(Submission, submission_id, populate_existing=True)
        return submission

    def list_by_scope(
        self, role: UserRole, faculty_id: Optional[UUID], student_id: Optional[UUID]
    ) -> List[Submission]:
        check_scope(role, faculty_id)

        query = self.db.query(Submission)
        if role == UserRole.YEAR_LEADER:
            query = query.filter(Submission.faculty_id == faculty_id)
        elif role == UserRole.STUDENT:
            query = query.filter(Submission.student_id == student_id)
        elif role not in UNSCOPED_ROLES:
            return []

        return query.order_by(Submission.submitted_at.desc()).all()


class SqlApprovalLogStore:
    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        submission_id: UUID,
        actor_id: UUID,
        action: ApprovalAction,
        comments: Optional[str],
        from_status: Optional[SubmissionStatus],
        to_status: SubmissionStatus,
    ) -> ApprovalLog:
        entry = ApprovalLog(
            submission_id=submission_id,
            user_id=actor_id,
            action=action,
            comments=comments,
            from_status=from_status,
            to_status=to_status,
            created_at=utcnow(),
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def list_for(self, submission_id: UUID) -> List[ApprovalLog]:
        return (
            self.db.query(ApprovalLog)
            .options(joinedload(ApprovalLog.user))
            .filter(ApprovalLog.submission_id == submission_id)
            .order_by(ApprovalLog.created_at.asc(), ApprovalLog.id.asc())
            .all()
        )
