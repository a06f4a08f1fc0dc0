from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
from uuid import UUID

from portal.database.models.auth import UserRole


class Decision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


@dataclass(frozen=True)
class Actor:
    """The user performing an action, as resolved by the identity provider."""
    id: UUID
    role: UserRole
    faculty_id: Optional[UUID] = None
    program_id: Optional[UUID] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    current_year: Optional[int] = None


@dataclass(frozen=True)
class ModuleSelection:
    id: str
    name: str
    code: str
    credits: int = 0

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "code": self.code, "credits": self.credits}


@dataclass
class RegistrationPayload:
    semester: str
    academic_year: str
    year_level: int
    modules: List[ModuleSelection] = field(default_factory=list)
    enrollment_intake: Optional[str] = None
