import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload
from typing import List

from portal.database.config.db import get_db
from portal.database.models.auth import UserRole
from portal.database.models.registration import ApprovalLog, Submission
from portal.schema.admin import AuditLogEntryResponse
from portal.utils.auth import require_roles
from portal.workflow.types import Actor

logger = logging.getLogger(__name__)

admin_router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
)

MAX_AUDIT_ENTRIES = 100


@admin_router.get("/audit-logs", response_model=List[AuditLogEntryResponse])
def list_audit_logs(
    limit: int = Query(MAX_AUDIT_ENTRIES, ge=1, le=MAX_AUDIT_ENTRIES),
    actor: Actor = Depends(require_roles(UserRole.SYSTEM_ADMIN)),
    db: Session = Depends(get_db),
):
    """
    Most recent approval log entries across all registrations, newest first.
    """
    entries = (
        db.query(ApprovalLog)
        .options(
            joinedload(ApprovalLog.user),
            joinedload(ApprovalLog.submission).joinedload(Submission.student),
        )
        .order_by(ApprovalLog.created_at.desc(), ApprovalLog.id.desc())
        .limit(limit)
        .all()
    )
    logger.info("Audit log read by %s (%d entries)", actor.id, len(entries))

    return [
        AuditLogEntryResponse(
            id=entry.id,
            submission_id=entry.submission_id,
            action=entry.action,
            from_status=entry.from_status,
            to_status=entry.to_status,
            comments=entry.comments,
            created_at=entry.created_at,
            actor_id=entry.user_id,
            actor_name=entry.user.full_name,
            actor_role=entry.user.role,
            student_id=entry.submission.student_id,
            student_name=entry.submission.student.full_name,
        )
        for entry in entries
    ]
