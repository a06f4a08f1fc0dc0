from pydantic import BaseModel
from uuid import UUID
from datetime import datetime

from portal.database.models.notification import NotificationSeverity


class NotificationResponse(BaseModel):
    id: UUID
    title: str
    message: str
    severity: NotificationSeverity
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    unread: int


class MarkedReadResponse(BaseModel):
    updated: int
