"""Assignment and invitation schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from schemas.base import CamelModel


class Assignment(CamelModel):
    id: int
    assignment_code: Optional[str] = None
    title: str
    course: Optional[str] = None
    description: Optional[str] = None
    deadline: datetime
    lecturer_id: str
    is_published: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CreateAssignmentRequest(CamelModel):
    """Create request. Title and deadline are checked by the route."""

    title: Optional[str] = None
    course: Optional[str] = None
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    is_published: bool = False


class UpdateAssignmentRequest(CreateAssignmentRequest):
    """Drafts have no code yet and are addressed by ``id``."""

    id: Optional[int] = None
    assignment_code: Optional[str] = None


class DeleteAssignmentRequest(CamelModel):
    assignment_code: Optional[str] = None


class AssignmentResponse(CamelModel):
    assignment: Assignment


class AssignmentListResponse(CamelModel):
    assignments: List[Assignment]


class LecturerAssignment(Assignment):
    """Assignment enriched with its distinct submitters."""

    total_submissions: int = 0
    student_ids: List[str] = Field(default_factory=list)
    student_names: List[str] = Field(default_factory=list)


class LecturerAssignmentListResponse(CamelModel):
    assignments: List[LecturerAssignment]


class InviteStudentsRequest(CamelModel):
    student_ids: List[str]
    assignment_code: str
