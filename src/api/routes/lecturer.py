"""Lecturer account routes."""

from typing import List

from fastapi import APIRouter, Depends

from api.routes.auth import require_admin, require_lecturer
from core.dependencies import AssignmentManagerDep, UserManagerDep
from schemas.assignment import LecturerAssignmentListResponse
from schemas.user import (
    BulkResult,
    DeleteLecturersRequest,
    LecturerListResponse,
    RegisterEntry,
    Role,
    UpdateLecturerRequest,
    User,
)

router = APIRouter(prefix="/api/lecturer", tags=["Lecturer"])


@router.post("/register", response_model=BulkResult, summary="Register lecturers")
def register_lecturers(
    entries: List[RegisterEntry],
    user_manager: UserManagerDep,
    current_user: User = Depends(require_admin),
) -> BulkResult:
    """Register lecturers in bulk and email each one a temporary password.

    Entries with an email that is already registered are reported in
    ``skippedEntries``.
    """
    return user_manager.register_users(entries, Role.LECTURER)


@router.get(
    "/assignments",
    response_model=LecturerAssignmentListResponse,
    summary="List the caller's assignments",
)
def lecturer_assignments(
    assignment_manager: AssignmentManagerDep,
    current_user: User = Depends(require_lecturer),
) -> LecturerAssignmentListResponse:
    return LecturerAssignmentListResponse(
        assignments=assignment_manager.list_for_lecturer(current_user.staff_id)
    )


@router.get("/all", response_model=LecturerListResponse, summary="List lecturers")
def all_lecturers(
    user_manager: UserManagerDep,
    skip: int = 0,
    current_user: User = Depends(require_admin),
) -> LecturerListResponse:
    return LecturerListResponse(lecturers=user_manager.list_users(Role.LECTURER, skip=skip))


@router.get("/total", summary="Count lecturers")
def total_lecturers(
    user_manager: UserManagerDep,
    current_user: User = Depends(require_admin),
) -> dict:
    return {"totalLecturers": user_manager.count_users(Role.LECTURER)}


@router.put("/update", summary="Update a lecturer")
def update_lecturer(
    req: UpdateLecturerRequest,
    user_manager: UserManagerDep,
    current_user: User = Depends(require_admin),
) -> dict:
    user_manager.update_user(req.staff_id, Role.LECTURER, req.updated_user)
    return {"message": "Lecturer details updated successfully"}


@router.delete("/clear", summary="Delete lecturers")
def delete_lecturers(
    req: DeleteLecturersRequest,
    user_manager: UserManagerDep,
    current_user: User = Depends(require_admin),
) -> dict:
    """Delete lecturers together with their assignments and invitations."""
    user_manager.delete_users(req.staff_ids, Role.LECTURER)
    return {"message": "Lecturers deleted successfully"}
