"""
ORM-level append-only enforcement for the approval log.

Approval log rows are the audit trail of every registration decision. Once
written they are never updated or deleted:

    session.flush()
         |
         v
    [before_update / before_delete] --> LedgerMutationError
         |
    [do_orm_execute: bulk UPDATE/DELETE] --> LedgerMutationError

Raising aborts the flush, so the surrounding transaction rolls back and the
database is never modified.
"""
import logging

from sqlalchemy import event
from sqlalchemy.orm import Session

from portal.database.models.registration import ApprovalLog
from portal.exceptions import LedgerMutationError

logger = logging.getLogger(__name__)

_registered = False


def _block(operation: str, entry_id) -> None:
    logger.error("Blocked %s on approval log entry %s", operation, entry_id)
    raise LedgerMutationError(entry_id, operation)


def _check_log_update(mapper, connection, target):
    _block("UPDATE", target.id)


def _check_log_delete(mapper, connection, target):
    _block("DELETE", target.id)


def _check_bulk_statements(orm_execute_state):
    if not (orm_execute_state.is_update or orm_execute_state.is_delete):
        return
    mappers = orm_execute_state.all_mappers
    if any(m.class_ is ApprovalLog for m in mappers):
        operation = "bulk UPDATE" if orm_execute_state.is_update else "bulk DELETE"
        _block(operation, "*")


def register_immutability_listeners() -> None:
    """
    Register append-only listeners for ApprovalLog. Safe to call more than once.
    """
    global _registered
    if _registered:
        return

    event.listen(ApprovalLog, "before_update", _check_log_update)
    event.listen(ApprovalLog, "before_delete", _check_log_delete)
    event.listen(Session, "do_orm_execute", _check_bulk_statements)
    _registered = True
