from portal.database.models.notification import NotificationSeverity
from portal.workflow.events import EventKind, WorkflowEvent
from portal.workflow.handlers.config import DeliveryContext, event_handler


def _period(event: WorkflowEvent) -> str:
    return f"{event.semester} {event.academic_year}"


@event_handler(EventKind.SUBMITTED)
def notify_submission_received(event: WorkflowEvent, ctx: DeliveryContext):
    ctx.notifier.notify(
        event.student_id,
        "Registration Submitted",
        f"Your registration for {_period(event)} has been submitted and is awaiting "
        f"{event.next_stage} review.",
        NotificationSeverity.INFO,
    )


@event_handler(EventKind.STAGE_APPROVED)
def notify_stage_approved(event: WorkflowEvent, ctx: DeliveryContext):
    ctx.notifier.notify(
        event.student_id,
        f"Registration Approved by {event.stage}",
        f"Your registration for {_period(event)} was approved by {event.stage} "
        f"and is now awaiting {event.next_stage} review.",
        NotificationSeverity.SUCCESS,
    )


@event_handler(EventKind.FINAL_APPROVED)
def notify_final_approval(event: WorkflowEvent, ctx: DeliveryContext):
    ctx.notifier.notify(
        event.student_id,
        "Registration Fully Approved",
        f"Your registration for {_period(event)} has been fully approved.",
        NotificationSeverity.SUCCESS,
    )


@event_handler(EventKind.REJECTED)
def notify_rejection(event: WorkflowEvent, ctx: DeliveryContext):
    ctx.notifier.notify(
        event.student_id,
        "Registration Rejected",
        f"Your registration for {_period(event)} was rejected by {event.stage}. "
        f"Reason: {event.comments}",
        NotificationSeverity.ERROR,
    )


@event_handler(EventKind.DOCUMENT_UPLOADED)
def notify_document_uploaded(event: WorkflowEvent, ctx: DeliveryContext):
    ctx.notifier.notify(
        event.student_id,
        "Confirmation Slip Available",
        f"Your registration confirmation slip for {_period(event)} is ready to download.",
        NotificationSeverity.INFO,
    )
