from pydantic import BaseModel, EmailStr
from typing import Optional
from uuid import UUID
from datetime import datetime


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: UUID
    email: str
    full_name: str
    verified: bool
    role: str
    faculty_id: Optional[UUID]
    program_id: Optional[UUID]
    student_number: Optional[str]
    current_year: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True
