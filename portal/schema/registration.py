from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from portal.database.models.auth import UserRole
from portal.database.models.registration import ApprovalAction, SubmissionStatus
from portal.workflow.types import Decision, ModuleSelection, RegistrationPayload


# ==================== REQUESTS ====================

class ModuleIn(BaseModel):
    """A module picked by the student."""
    id: str = Field(..., description="Module identifier")
    name: str = Field(..., description="Module name")
    code: str = Field(..., description="Module code, e.g. CS301")
    credits: int = Field(0, ge=0)


class RegistrationSubmitRequest(BaseModel):
    semester: str = Field(..., description="Semester label, e.g. 'Semester 1'")
    academic_year: str = Field(..., description="Academic year, e.g. '2025/2026'")
    year_level: int = Field(..., description="Year of study (1-4)")
    enrollment_intake: Optional[str] = Field(None, description="Intake the student enrolled in")
    modules: List[ModuleIn] = Field(default_factory=list)

    @field_validator("semester", "academic_year")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    def to_payload(self) -> RegistrationPayload:
        return RegistrationPayload(
            semester=self.semester,
            academic_year=self.academic_year,
            year_level=self.year_level,
            enrollment_intake=self.enrollment_intake,
            modules=[ModuleSelection(m.id, m.name, m.code, m.credits) for m in self.modules],
        )


class CommentRequest(BaseModel):
    comments: Optional[str] = Field(None, description="Approval note or rejection reason")


class DecisionRequest(CommentRequest):
    decision: Decision


# ==================== RESPONSES ====================

class ModuleOut(BaseModel):
    id: str
    name: str
    code: str
    credits: int = 0


class SubmissionResponse(BaseModel):
    id: UUID
    student_id: UUID
    faculty_id: UUID
    program_id: UUID
    semester: str
    academic_year: str
    year_level: int
    enrollment_intake: Optional[str]
    modules: List[ModuleOut]
    status: SubmissionStatus
    submitted_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ApprovalLogResponse(BaseModel):
    id: int
    submission_id: UUID
    user_id: UUID
    actor_name: Optional[str] = None
    actor_role: Optional[UserRole] = None
    action: ApprovalAction
    comments: Optional[str]
    from_status: Optional[SubmissionStatus]
    to_status: SubmissionStatus
    created_at: datetime

    class Config:
        from_attributes = True
