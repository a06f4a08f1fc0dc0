"""
In-memory stand-ins for the workflow stores, used by the engine unit tests.
"""
import itertools
from typing import Dict, List, Optional
from uuid import UUID

from portal.database.models.auth import UserRole
from portal.database.models.registration import (
    ApprovalAction,
    ApprovalLog,
    PENDING_STATUSES,
    Submission,
    SubmissionStatus,
    utcnow,
)
from portal.exceptions import DuplicateSubmission, InvalidStage, PersistenceFailure
from portal.workflow.store import UNSCOPED_ROLES, check_scope


class InMemorySubmissionStore:
    def __init__(self):
        self.rows: Dict[UUID, Submission] = {}

    def find_active(self, student_id, semester, academic_year) -> Optional[Submission]:
        for row in self.rows.values():
            if (
                row.student_id == student_id
                and row.semester == semester
                and row.academic_year == academic_year
                and row.status in PENDING_STATUSES
            ):
                return row
        return None

    def create(self, submission: Submission) -> Submission:
        if self.find_active(submission.student_id, submission.semester, submission.academic_year):
            raise DuplicateSubmission("Registration already submitted")
        self.rows[submission.id] = submission
        return submission

    def get(self, submission_id, for_update=False) -> Optional[Submission]:
        return self.rows.get(submission_id)

    def update_status(self, submission_id, expected, new_status) -> Submission:
        row = self.rows.get(submission_id)
        if row is None or row.status != expected:
            raise InvalidStage("This registration has already moved past the expected stage")
        row.status = new_status
        row.updated_at = utcnow()
        return row

    def list_by_scope(self, role, faculty_id, student_id) -> List[Submission]:
        check_scope(role, faculty_id)
        if role in UNSCOPED_ROLES:
            rows = list(self.rows.values())
        elif role == UserRole.YEAR_LEADER:
            rows = [r for r in self.rows.values() if r.faculty_id == faculty_id]
        elif role == UserRole.STUDENT:
            rows = [r for r in self.rows.values() if r.student_id == student_id]
        else:
            rows = []
        return sorted(rows, key=lambda r: r.submitted_at, reverse=True)


class InMemoryApprovalLogStore:
    def __init__(self):
        self.entries: List[ApprovalLog] = []
        self._ids = itertools.count(1)
        self.fail_next_append = False

    def append(self, submission_id, actor_id, action, comments, from_status, to_status) -> ApprovalLog:
        if self.fail_next_append:
            self.fail_next_append = False
            raise PersistenceFailure("The registration store is temporarily unavailable")
        entry = ApprovalLog(
            id=next(self._ids),
            submission_id=submission_id,
            user_id=actor_id,
            action=ApprovalAction(action),
            comments=comments,
            from_status=from_status,
            to_status=SubmissionStatus(to_status),
            created_at=utcnow(),
        )
        self.entries.append(entry)
        return entry

    def list_for(self, submission_id) -> List[ApprovalLog]:
        return [e for e in self.entries if e.submission_id == submission_id]
