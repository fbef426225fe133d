"""Student account routes."""

from typing import List

from fastapi import APIRouter, Depends

from api.routes.auth import require_admin, require_student
from core.dependencies import AssignmentManagerDep, UserManagerDep
from schemas.assignment import Assignment, AssignmentListResponse
from schemas.user import (
    BulkResult,
    DeleteStudentsRequest,
    RegisterEntry,
    Role,
    StudentListResponse,
    UpdateStudentRequest,
    User,
)

router = APIRouter(prefix="/api/student", tags=["Student"])


@router.post("/register", response_model=BulkResult, summary="Register students")
def register_students(
    entries: List[RegisterEntry],
    user_manager: UserManagerDep,
    current_user: User = Depends(require_admin),
) -> BulkResult:
    """Register students in bulk and email each one a temporary password."""
    return user_manager.register_users(entries, Role.STUDENT)


@router.get("/all", response_model=StudentListResponse, summary="List students")
def all_students(
    user_manager: UserManagerDep,
    skip: int = 0,
    current_user: User = Depends(require_admin),
) -> StudentListResponse:
    return StudentListResponse(students=user_manager.list_users(Role.STUDENT, skip=skip))


@router.get(
    "/byassignment",
    response_model=AssignmentListResponse,
    summary="List assignments the caller was invited to",
)
def student_assignments(
    assignment_manager: AssignmentManagerDep,
    current_user: User = Depends(require_student),
) -> AssignmentListResponse:
    models = assignment_manager.list_for_student(current_user.staff_id)
    return AssignmentListResponse(assignments=[Assignment.model_validate(m) for m in models])


@router.get("/total", summary="Count students")
def total_students(
    user_manager: UserManagerDep,
    current_user: User = Depends(require_admin),
) -> dict:
    return {"totalStudents": user_manager.count_users(Role.STUDENT)}


@router.put("/update", summary="Update a student")
def update_student(
    req: UpdateStudentRequest,
    user_manager: UserManagerDep,
    current_user: User = Depends(require_admin),
) -> dict:
    user_manager.update_user(req.student_id, Role.STUDENT, req.updated_user)
    return {"message": "Student details updated successfully"}


@router.delete("/clear", summary="Delete students")
def delete_students(
    req: DeleteStudentsRequest,
    user_manager: UserManagerDep,
    current_user: User = Depends(require_admin),
) -> dict:
    user_manager.delete_users(req.student_ids, Role.STUDENT)
    return {"message": "Students deleted successfully"}
