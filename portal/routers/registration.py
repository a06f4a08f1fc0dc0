from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from portal.database.config.db import get_db, transaction
from portal.database.models.auth import UserRole
from portal.schema.registration import (
    ApprovalLogResponse,
    CommentRequest,
    DecisionRequest,
    RegistrationSubmitRequest,
    SubmissionResponse,
)
from portal.utils.auth import get_current_actor, require_roles
from portal.utils.system_settings import SqlRegistrationWindow
from portal.workflow.dispatcher import NotificationDispatcher, get_dispatcher
from portal.workflow.engine import TRANSITIONS, WorkflowEngine
from portal.workflow.events import Outbox
from portal.workflow.store import SqlApprovalLogStore, SqlSubmissionStore
from portal.workflow.types import Actor, Decision

registration_router = APIRouter(
    prefix="/registrations",
    tags=["Registrations"],
)

require_approver = require_roles(*TRANSITIONS.keys())


def build_engine(db: Session, outbox: Outbox) -> WorkflowEngine:
    return WorkflowEngine(
        submissions=SqlSubmissionStore(db),
        approval_log=SqlApprovalLogStore(db),
        events=outbox,
        window=SqlRegistrationWindow(db),
    )


def _decide(
    submission_id: UUID,
    actor: Actor,
    decision: Decision,
    comments: Optional[str],
    db: Session,
    background_tasks: BackgroundTasks,
    dispatcher: NotificationDispatcher,
):
    outbox = Outbox()
    with transaction(db):
        submission = build_engine(db, outbox).decide(submission_id, actor, decision, comments)

    # Only committed transitions reach the dispatcher
    background_tasks.add_task(dispatcher.dispatch, outbox.drain())
    return submission


@registration_router.post(
    "", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED
)
def submit_registration(
    body: RegistrationSubmitRequest,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_roles(UserRole.STUDENT)),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """
    Submit a semester registration. It starts at the Year Leader stage.
    """
    outbox = Outbox()
    with transaction(db):
        submission = build_engine(db, outbox).submit(actor, body.to_payload())

    background_tasks.add_task(dispatcher.dispatch, outbox.drain())
    return submission


@registration_router.get("", response_model=List[SubmissionResponse])
def list_registrations(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    List the registrations visible to the caller, newest first.

    Students see their own, Year Leaders their faculty's, everyone else all.
    """
    return build_engine(db, Outbox()).list_visible(actor)


@registration_router.get("/{submission_id}", response_model=SubmissionResponse)
def get_registration(
    submission_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return build_engine(db, Outbox()).get_visible(submission_id, actor)


@registration_router.get("/{submission_id}/history", response_model=List[ApprovalLogResponse])
def get_registration_history(
    submission_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Approval log of a registration, oldest entry first.
    """
    return build_engine(db, Outbox()).history(submission_id, actor)


@registration_router.post("/{submission_id}/approve", response_model=SubmissionResponse)
def approve_registration(
    submission_id: UUID,
    background_tasks: BackgroundTasks,
    body: Optional[CommentRequest] = None,
    actor: Actor = Depends(require_approver),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """
    Approve a registration at the caller's stage and advance it to the next one.
    """
    comments = body.comments if body else None
    return _decide(
        submission_id, actor, Decision.APPROVE, comments, db, background_tasks, dispatcher
    )


@registration_router.post("/{submission_id}/reject", response_model=SubmissionResponse)
def reject_registration(
    submission_id: UUID,
    body: CommentRequest,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_approver),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """
    Reject a pending registration. A reason of at least 5 characters is required.
    """
    return _decide(
        submission_id, actor, Decision.REJECT, body.comments, db, background_tasks, dispatcher
    )


@registration_router.post("/{submission_id}/decision", response_model=SubmissionResponse)
def decide_registration(
    submission_id: UUID,
    body: DecisionRequest,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """
    Generic approve/reject entry point; the engine resolves the caller's stage.
    """
    return _decide(
        submission_id, actor, body.decision, body.comments, db, background_tasks, dispatcher
    )
