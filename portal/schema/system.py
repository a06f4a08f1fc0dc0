from pydantic import BaseModel, Field, field_validator
from typing import Optional
from uuid import UUID
from datetime import datetime


class SystemSettingsResponse(BaseModel):
    current_academic_year: str
    current_session: str
    is_registration_open: bool
    updated_by: Optional[UUID]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class SystemSettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""
    current_academic_year: Optional[str] = Field(None, pattern=r"^\d{4}/\d{4}$")
    current_session: Optional[str] = Field(None, min_length=1, max_length=100)
    is_registration_open: Optional[bool] = None

    @field_validator("current_session")
    @classmethod
    def strip_session(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v
