"""
Sequential approval workflow for semester registrations.

A submission moves through three approver stages in a fixed order and ends
either APPROVED or REJECTED:

    PENDING_YEAR_LEADER -> PENDING_FINANCE -> PENDING_REGISTRAR -> APPROVED
             \\                   |                    /
              +-----------> REJECTED <---------------+

Which role may move a submission, and where to, is described once in
``TRANSITIONS``; ``decide`` consults that table for every role instead of
branching per route.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol
from uuid import UUID

from portal.database.models.auth import UserRole
from portal.database.models.registration import (
    ApprovalAction,
    ApprovalLog,
    Submission,
    SubmissionStatus,
    utcnow,
)
from portal.exceptions import (
    DuplicateSubmission,
    InvalidStage,
    NotFound,
    Unauthorized,
    ValidationFailed,
)
from portal.workflow.events import EventKind, EventSink, WorkflowEvent
from portal.workflow.store import ApprovalLogStore, SubmissionStore, check_scope, is_visible
from portal.workflow.types import Actor, Decision, ModuleSelection, RegistrationPayload

logger = logging.getLogger(__name__)

MAX_MODULES = 10
MIN_REASON_LENGTH = 5
MAX_COMMENT_LENGTH = 500


@dataclass(frozen=True)
class Stage:
    role: UserRole
    awaiting: SubmissionStatus
    on_approve: SubmissionStatus
    label: str


TRANSITIONS: Dict[UserRole, Stage] = {
    UserRole.YEAR_LEADER: Stage(
        UserRole.YEAR_LEADER,
        SubmissionStatus.PENDING_YEAR_LEADER,
        SubmissionStatus.PENDING_FINANCE,
        "Year Leader",
    ),
    UserRole.FINANCE_OFFICER: Stage(
        UserRole.FINANCE_OFFICER,
        SubmissionStatus.PENDING_FINANCE,
        SubmissionStatus.PENDING_REGISTRAR,
        "Finance",
    ),
    UserRole.REGISTRAR: Stage(
        UserRole.REGISTRAR,
        SubmissionStatus.PENDING_REGISTRAR,
        SubmissionStatus.APPROVED,
        "Registrar",
    ),
}

# Year leaders may only act within their own faculty
FACULTY_SCOPED_ROLES = frozenset({UserRole.YEAR_LEADER})

STAGE_ORDER = (
    SubmissionStatus.PENDING_YEAR_LEADER,
    SubmissionStatus.PENDING_FINANCE,
    SubmissionStatus.PENDING_REGISTRAR,
    SubmissionStatus.APPROVED,
)

STAGE_LABELS = {stage.awaiting: stage.label for stage in TRANSITIONS.values()}


class RegistrationWindow(Protocol):
    def is_open(self) -> bool:
        ...


# ==================== PURE DECISION LOGIC ====================


def resolve_transition(
    actor: Actor,
    status: SubmissionStatus,
    submission_faculty_id: Optional[UUID],
    decision: Decision,
) -> SubmissionStatus:
    """
    Decide the status a submission moves to when ``actor`` applies ``decision``.

    Raises:
        Unauthorized: the role has no stage, or a year leader is outside their faculty.
        InvalidStage: the submission is terminal, or (for approvals) not at the
            actor's stage.
    """
    stage = TRANSITIONS.get(actor.role)
    if stage is None:
        raise Unauthorized("Role not authorized to approve or reject registrations")

    if actor.role in FACULTY_SCOPED_ROLES and actor.faculty_id != submission_faculty_id:
        raise Unauthorized("You can only act on registrations in your faculty")

    if status.is_terminal:
        raise InvalidStage(f"Registration is already {status.value}; no further decisions are allowed")

    if decision == Decision.APPROVE:
        if status != stage.awaiting:
            raise InvalidStage(
                f"Invalid stage: registration is {status.value}, "
                f"{stage.label} approves only at {stage.awaiting.value}"
            )
        return stage.on_approve

    # Any staff stage may reject a pending submission, even out of turn
    return SubmissionStatus.REJECTED


def validate_comments(decision: Decision, comments: Optional[str]) -> Optional[str]:
    cleaned = comments.strip() if comments else None

    if decision == Decision.REJECT:
        if not cleaned or len(cleaned) < MIN_REASON_LENGTH:
            raise ValidationFailed(
                f"Rejection reason must be at least {MIN_REASON_LENGTH} characters long",
                field="comments",
            )

    if cleaned and len(cleaned) > MAX_COMMENT_LENGTH:
        raise ValidationFailed(
            f"Comments cannot exceed {MAX_COMMENT_LENGTH} characters", field="comments"
        )
    return cleaned or None


def validate_modules(modules: Iterable[ModuleSelection]) -> List[dict]:
    modules = list(modules or [])
    if not modules:
        raise ValidationFailed("At least one module must be selected", field="modules")
    if len(modules) > MAX_MODULES:
        raise ValidationFailed(
            f"Cannot select more than {MAX_MODULES} modules per semester", field="modules"
        )

    for module in modules:
        if not all((value or "").strip() for value in (module.id, module.name, module.code)):
            raise ValidationFailed("Each module must have id, name, and code", field="modules")

    if len({m.id for m in modules}) != len(modules):
        raise ValidationFailed("Duplicate modules selected. Please remove duplicates.", field="modules")

    return [m.to_dict() for m in modules]


def replay(entries: Iterable[ApprovalLog]) -> SubmissionStatus:
    """
    Rebuild a submission's status from its approval log, oldest entry first.

    Raises ValueError when the log is empty or describes an impossible history.
    """
    status: Optional[SubmissionStatus] = None
    for entry in entries:
        action = ApprovalAction(entry.action)
        if action == ApprovalAction.SUBMITTED:
            if status is not None:
                raise ValueError("Log contains more than one SUBMITTED entry")
            status = SubmissionStatus.PENDING_YEAR_LEADER
            continue

        if status is None or status.is_terminal:
            raise ValueError(f"{action.value} entry {entry.id} follows a terminal or missing state")

        if action == ApprovalAction.APPROVED:
            status = STAGE_ORDER[STAGE_ORDER.index(status) + 1]
        else:
            status = SubmissionStatus.REJECTED

    if status is None:
        raise ValueError("Approval log is empty")
    return status


# ==================== ENGINE ====================


class WorkflowEngine:
    """
    Applies registration actions against explicitly provided stores.

    The engine does not commit. Callers wrap each call in one transaction so
    the status change and its log entry persist together, then hand the
    published events to the dispatcher.
    """

    def __init__(
        self,
        submissions: SubmissionStore,
        approval_log: ApprovalLogStore,
        events: EventSink,
        window: Optional[RegistrationWindow] = None,
    ):
        self.submissions = submissions
        self.approval_log = approval_log
        self.events = events
        self.window = window

    def submit(self, student: Actor, payload: RegistrationPayload) -> Submission:
        if student.role != UserRole.STUDENT:
            raise Unauthorized("Only students can submit registrations")

        if self.window is not None and not self.window.is_open():
            raise ValidationFailed("Registration is currently closed", field="registration")

        if not student.faculty_id or not student.program_id:
            raise ValidationFailed(
                "Student must have a faculty and program assigned", field="faculty_id"
            )

        semester = (payload.semester or "").strip()
        academic_year = (payload.academic_year or "").strip()
        if not semester:
            raise ValidationFailed("semester is required", field="semester")
        if not academic_year:
            raise ValidationFailed("academic_year is required", field="academic_year")
        if not 1 <= payload.year_level <= 4:
            raise ValidationFailed("Year level must be between 1 and 4", field="year_level")

        modules = validate_modules(payload.modules)

        if self.submissions.find_active(student.id, semester, academic_year):
            raise DuplicateSubmission(f"Registration already submitted for {semester} {academic_year}.")

        submission = self.submissions.create(
            Submission(
                id=uuid.uuid4(),
                student_id=student.id,
                faculty_id=student.faculty_id,
                program_id=student.program_id,
                semester=semester,
                academic_year=academic_year,
                year_level=payload.year_level,
                enrollment_intake=payload.enrollment_intake,
                modules=modules,
                status=SubmissionStatus.PENDING_YEAR_LEADER,
                submitted_at=utcnow(),
            )
        )
        self.approval_log.append(
            submission.id,
            student.id,
            ApprovalAction.SUBMITTED,
            "Initial registration submission",
            None,
            SubmissionStatus.PENDING_YEAR_LEADER,
        )

        logger.info(
            "Submission %s created by student %s for %s %s (%d modules)",
            submission.id, student.id, semester, academic_year, len(modules),
        )
        self.events.publish(
            WorkflowEvent(
                kind=EventKind.SUBMITTED,
                submission_id=submission.id,
                student_id=student.id,
                semester=semester,
                academic_year=academic_year,
                actor_id=student.id,
                actor_name=student.full_name,
                next_stage=STAGE_LABELS[SubmissionStatus.PENDING_YEAR_LEADER],
            )
        )
        return submission

    def decide(
        self,
        submission_id: UUID,
        actor: Actor,
        decision: Decision,
        comments: Optional[str] = None,
    ) -> Submission:
        submission = self.submissions.get(submission_id, for_update=True)
        if submission is None:
            raise NotFound("Registration not found")

        current = SubmissionStatus(submission.status)
        new_status = resolve_transition(actor, current, submission.faculty_id, decision)
        cleaned = validate_comments(decision, comments)

        updated = self.submissions.update_status(submission_id, current, new_status)
        action = ApprovalAction.APPROVED if decision == Decision.APPROVE else ApprovalAction.REJECTED
        self.approval_log.append(submission_id, actor.id, action, cleaned, current, new_status)

        logger.info(
            "Submission %s %s by %s %s: %s -> %s",
            submission_id, action.value, actor.role.value, actor.id, current.value, new_status.value,
        )
        self.events.publish(self._transition_event(updated, actor, current, new_status, cleaned))
        return updated

    def get_visible(self, submission_id: UUID, actor: Actor) -> Submission:
        check_scope(actor.role, actor.faculty_id)
        submission = self.submissions.get(submission_id)
        if submission is None or not is_visible(submission, actor.role, actor.faculty_id, actor.id):
            raise NotFound("Registration not found")
        return submission

    def list_visible(self, actor: Actor) -> List[Submission]:
        return self.submissions.list_by_scope(actor.role, actor.faculty_id, actor.id)

    def history(self, submission_id: UUID, actor: Actor) -> List[ApprovalLog]:
        self.get_visible(submission_id, actor)
        return self.approval_log.list_for(submission_id)

    def _transition_event(
        self,
        submission: Submission,
        actor: Actor,
        previous: SubmissionStatus,
        new_status: SubmissionStatus,
        comments: Optional[str],
    ) -> WorkflowEvent:
        if new_status == SubmissionStatus.REJECTED:
            kind = EventKind.REJECTED
        elif new_status == SubmissionStatus.APPROVED:
            kind = EventKind.FINAL_APPROVED
        else:
            kind = EventKind.STAGE_APPROVED

        return WorkflowEvent(
            kind=kind,
            submission_id=submission.id,
            student_id=submission.student_id,
            semester=submission.semester,
            academic_year=submission.academic_year,
            actor_id=actor.id,
            actor_name=actor.full_name,
            stage=TRANSITIONS[actor.role].label,
            next_stage=STAGE_LABELS.get(new_status),
            comments=comments,
        )
