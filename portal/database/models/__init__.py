# Import models in dependency order
from portal.database.models.faculty import Faculty, Program
from portal.database.models.auth import User, UserRole
from portal.database.models.registration import (
    Submission,
    SubmissionStatus,
    ApprovalLog,
    ApprovalAction,
    RegistrationDocument,
    PENDING_STATUSES,
)
from portal.database.models.notification import Notification, NotificationSeverity
from portal.database.models.system import SystemSettings

__all__ = [
    "Faculty",
    "Program",
    "User",
    "UserRole",
    "Submission",
    "SubmissionStatus",
    "ApprovalLog",
    "ApprovalAction",
    "RegistrationDocument",
    "PENDING_STATUSES",
    "Notification",
    "NotificationSeverity",
    "SystemSettings",
]
