import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.database.config.db import get_db, transaction
from portal.database.models.auth import UserRole
from portal.schema.system import SystemSettingsResponse, SystemSettingsUpdate
from portal.utils.auth import get_current_actor, require_roles
from portal.utils.system_settings import get_or_create_settings, get_settings
from portal.workflow.types import Actor

logger = logging.getLogger(__name__)

settings_router = APIRouter(
    prefix="/settings",
    tags=["System Settings"],
)


@settings_router.get("", response_model=SystemSettingsResponse)
def read_settings(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Current academic year, session and whether registration is open.
    """
    return get_settings(db)


@settings_router.put("", response_model=SystemSettingsResponse)
def update_settings(
    body: SystemSettingsUpdate,
    actor: Actor = Depends(require_roles(UserRole.SYSTEM_ADMIN)),
    db: Session = Depends(get_db),
):
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    with transaction(db):
        settings = get_or_create_settings(db)
        for key, value in changes.items():
            setattr(settings, key, value)
        settings.updated_by = actor.id

    logger.info("System settings updated by %s: %s", actor.id, changes)
    return settings
