import logging
from typing import Union
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.database.models.notification import Notification, NotificationSeverity

logger = logging.getLogger(__name__)


class InAppNotifier:
    """Notification sink backed by the notifications table.

    Each notification commits on its own session; failures are logged and
    never raised to the caller.
    """

    def __init__(self, db: Session):
        self.db = db

    def notify(
        self,
        user_id: UUID,
        title: str,
        message: str,
        severity: Union[NotificationSeverity, str] = NotificationSeverity.INFO,
    ) -> bool:
        try:
            self.db.add(
                Notification(
                    user_id=user_id,
                    title=title,
                    message=message,
                    severity=NotificationSeverity(severity),
                )
            )
            self.db.commit()
            return True
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not store notification %r for user %s", title, user_id)
            return False
