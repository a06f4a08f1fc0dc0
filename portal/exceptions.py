"""
Domain errors raised by the registration workflow.

Every error carries a human-readable message and a stable code. The HTTP
layer maps them onto status codes in ``portal.main``.
"""
from typing import Optional


class PortalError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "PORTAL_ERROR"
    retryable = False

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        body = {"detail": self.message, "code": self.code}
        if self.field:
            body["field"] = self.field
        return body


class ValidationFailed(PortalError):
    """Malformed input: empty or oversized module list, missing profile fields."""

    code = "VALIDATION_FAILED"


class DuplicateSubmission(PortalError):
    """An active submission already exists for the student and period."""

    code = "DUPLICATE_SUBMISSION"


class Unauthorized(PortalError):
    """The actor's role or faculty scope does not permit the action."""

    code = "UNAUTHORIZED"


class InvalidStage(PortalError):
    """The submission is not awaiting this actor's stage."""

    code = "INVALID_STAGE"


class NotFound(PortalError):
    code = "NOT_FOUND"


class PersistenceFailure(PortalError):
    """The store failed mid-transaction. Callers may retry the whole operation."""

    code = "PERSISTENCE_FAILURE"
    retryable = True


class LedgerMutationError(Exception):
    """Raised when code tries to update or delete an approval log entry."""

    def __init__(self, entry_id, operation: str):
        super().__init__(f"Approval log entry {entry_id} is append-only ({operation} blocked)")
        self.entry_id = entry_id
        self.operation = operation
