from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from portal.database.config.db import get_db, transaction
from portal.database.models.notification import Notification
from portal.exceptions import NotFound
from portal.schema.notification import (
    MarkedReadResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from portal.utils.auth import get_current_actor
from portal.workflow.types import Actor

notification_router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
)


def _get_own_notification(db: Session, notification_id: UUID, actor: Actor) -> Notification:
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == actor.id)
        .first()
    )
    if notification is None:
        raise NotFound("Notification not found")
    return notification


@notification_router.get("", response_model=List[NotificationResponse])
def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    query = db.query(Notification).filter(Notification.user_id == actor.id)
    if unread_only:
        query = query.filter(Notification.read.is_(False))
    return query.order_by(Notification.created_at.desc()).limit(limit).all()


@notification_router.get("/unread-count", response_model=UnreadCountResponse)
def unread_count(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    count = (
        db.query(Notification)
        .filter(Notification.user_id == actor.id, Notification.read.is_(False))
        .count()
    )
    return {"unread": count}


@notification_router.post("/read-all", response_model=MarkedReadResponse)
def mark_all_read(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    with transaction(db):
        updated = (
            db.query(Notification)
            .filter(Notification.user_id == actor.id, Notification.read.is_(False))
            .update({Notification.read: True}, synchronize_session=False)
        )
    return {"updated": updated}


@notification_router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    with transaction(db):
        notification = _get_own_notification(db, notification_id, actor)
        notification.read = True
    return notification


@notification_router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    with transaction(db):
        db.delete(_get_own_notification(db, notification_id, actor))
