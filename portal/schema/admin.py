from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime

from portal.database.models.auth import UserRole
from portal.database.models.registration import ApprovalAction, SubmissionStatus


class AuditLogEntryResponse(BaseModel):
    """One approval log entry in the system-wide audit feed."""
    id: int
    submission_id: UUID
    action: ApprovalAction
    from_status: Optional[SubmissionStatus]
    to_status: SubmissionStatus
    comments: Optional[str]
    created_at: datetime

    # Who acted
    actor_id: UUID
    actor_name: str
    actor_role: UserRole

    # Whose registration
    student_id: UUID
    student_name: str
