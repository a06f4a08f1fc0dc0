import logging

from fastapi.concurrency import run_in_threadpool

from portal.workflow.events import EventKind, WorkflowEvent
from portal.workflow.handlers.config import DeliveryContext, event_handler

logger = logging.getLogger(__name__)


def _email_context(event: WorkflowEvent, student) -> dict:
    """Template variables shared by every registration email."""
    return {
        "student_name": student.full_name,
        "semester": event.semester,
        "academic_year": event.academic_year,
        "approver_name": event.actor_name,
        "stage": event.stage,
        "next_stage": event.next_stage,
        "comments": event.comments,
        "submission_id": str(event.submission_id),
    }


def _recipient(event: WorkflowEvent, ctx: DeliveryContext):
    student = ctx.identity.lookup(event.student_id)
    if not student.email:
        logger.warning("Student %s has no email address; skipping %s email", student.id, event.kind.value)
        return None
    return student


@event_handler(EventKind.SUBMITTED)
async def email_submission_received(event: WorkflowEvent, ctx: DeliveryContext):
    student = await run_in_threadpool(_recipient, event, ctx)
    if student:
        await ctx.mailer.send_submission_received_email(student.email, _email_context(event, student))


@event_handler(EventKind.STAGE_APPROVED)
async def email_stage_approved(event: WorkflowEvent, ctx: DeliveryContext):
    student = await run_in_threadpool(_recipient, event, ctx)
    if student:
        await ctx.mailer.send_approval_email(event.stage, student.email, _email_context(event, student))


@event_handler(EventKind.FINAL_APPROVED)
async def email_final_approval(event: WorkflowEvent, ctx: DeliveryContext):
    student = await run_in_threadpool(_recipient, event, ctx)
    if student:
        await ctx.mailer.send_final_approval_email(student.email, _email_context(event, student))


@event_handler(EventKind.REJECTED)
async def email_rejection(event: WorkflowEvent, ctx: DeliveryContext):
    student = await run_in_threadpool(_recipient, event, ctx)
    if student:
        await ctx.mailer.send_rejection_email(
            student.email, event.comments, _email_context(event, student)
        )
