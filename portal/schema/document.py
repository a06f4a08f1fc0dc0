from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime


class DocumentResponse(BaseModel):
    id: UUID
    submission_id: UUID
    file_name: str
    file_size_bytes: int
    mime_type: str
    uploaded_by: Optional[UUID]
    uploaded_at: datetime

    class Config:
        from_attributes = True
