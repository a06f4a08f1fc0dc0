"""
Outbound workflow events.

The engine never talks to notification or email providers directly. It
publishes ``WorkflowEvent``s into an ``Outbox`` that lives for one unit of
work; the caller hands the drained events to the dispatcher only after the
transaction has committed. A rolled-back transition therefore never notifies
anyone, and a slow provider never holds a database transaction open.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Protocol
from uuid import UUID


class EventKind(str, Enum):
    SUBMITTED = "registration.submitted"
    STAGE_APPROVED = "registration.stage_approved"
    FINAL_APPROVED = "registration.final_approved"
    REJECTED = "registration.rejected"
    DOCUMENT_UPLOADED = "registration.document_uploaded"


@dataclass(frozen=True)
class WorkflowEvent:
    kind: EventKind
    submission_id: UUID
    student_id: UUID
    semester: str
    academic_year: str
    actor_id: Optional[UUID] = None
    actor_name: Optional[str] = None
    stage: Optional[str] = None
    next_stage: Optional[str] = None
    comments: Optional[str] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class EventSink(Protocol):
    def publish(self, event: WorkflowEvent) -> None:
        ...


class Outbox:
    """Collects events raised during one unit of work."""

    def __init__(self):
        self._events: List[WorkflowEvent] = []

    def publish(self, event: WorkflowEvent) -> None:
        self._events.append(event)

    def drain(self) -> List[WorkflowEvent]:
        events, self._events = self._events, []
        return events

    def discard(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)
