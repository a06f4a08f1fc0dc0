"""
Registration window settings utility functions
"""
from sqlalchemy.orm import Session

from portal.database.models.system import SystemSettings

DEFAULT_SETTINGS = {
    "current_academic_year": "2025/2026",
    "current_session": "March - June",
    "is_registration_open": True,
}


def get_settings(db: Session) -> SystemSettings:
    """
    Return the system settings row, or an unsaved row holding the defaults.

    Never writes; the row is seeded by the initial migration.
    """
    settings = db.query(SystemSettings).first()
    if settings is None:
        settings = SystemSettings(**DEFAULT_SETTINGS)
    return settings


def get_or_create_settings(db: Session) -> SystemSettings:
    """
    Return the single system settings row, creating it with defaults if missing.

    The new row is flushed, not committed; the caller's transaction owns it.
    """
    settings = db.query(SystemSettings).first()
    if settings is None:
        settings = SystemSettings(**DEFAULT_SETTINGS)
        db.add(settings)
        db.flush()
    return settings


class SqlRegistrationWindow:
    def __init__(self, db: Session):
        self.db = db

    def is_open(self) -> bool:
        return bool(get_settings(self.db).is_registration_open)
