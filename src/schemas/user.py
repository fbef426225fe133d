"""User-related request and response schemas."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from schemas.base import CamelModel


class Role(str, Enum):
    """User roles."""

    ADMIN = "ADMIN"
    LECTURER = "LECTURER"
    STUDENT = "STUDENT"


class User(CamelModel):
    """User information returned by the API (never carries the password hash)."""

    id: int
    staff_id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Role
    change_password: bool = False
    created_at: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class LoginRequest(CamelModel):
    """Login with a staff id or an email address."""

    email_or_id: str
    password: str


class LoginResponse(CamelModel):
    user: User
    token: str


class CurrentUserResponse(CamelModel):
    user: User


class RegisterEntry(CamelModel):
    """One row of a bulk registration request."""

    first_name: str
    last_name: str
    email: str


class BulkResult(CamelModel):
    """Outcome of a bulk operation, split into processed and skipped rows."""

    message: str
    successful_entries: List[Dict[str, Any]] = Field(default_factory=list)
    skipped_entries: List[Dict[str, Any]] = Field(default_factory=list)


class UserUpdate(CamelModel):
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UpdateLecturerRequest(CamelModel):
    staff_id: str
    updated_user: UserUpdate


class UpdateStudentRequest(CamelModel):
    student_id: str
    updated_user: UserUpdate


class DeleteLecturersRequest(CamelModel):
    staff_ids: List[str]


class DeleteStudentsRequest(CamelModel):
    student_ids: List[str]


class LecturerListResponse(CamelModel):
    lecturers: List[User]


class StudentListResponse(CamelModel):
    students: List[User]


class ChangePasswordRequest(CamelModel):
    """Password change request.

    Fields are optional so that missing values are reported with the
    portal's own 400 message instead of a schema validation error.
    """

    user_id: Optional[int] = None
    new_password: Optional[str] = None
    confirm_password: Optional[str] = None


class ForgotPasswordRequest(CamelModel):
    email: str


class ResetPasswordRequest(ChangePasswordRequest):
    """Password reset request carrying the token from the reset link."""

    token: Optional[str] = None
