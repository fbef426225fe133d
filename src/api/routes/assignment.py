"""Assignment routes."""

from fastapi import APIRouter, Depends, status

from api.routes.auth import get_current_user, require_lecturer
from core.dependencies import AssignmentManagerDep
from schemas.assignment import (
    Assignment,
    AssignmentListResponse,
    AssignmentResponse,
    CreateAssignmentRequest,
    DeleteAssignmentRequest,
    UpdateAssignmentRequest,
)
from schemas.user import User

router = APIRouter(prefix="/api/assignment", tags=["Assignment"])


@router.post(
    "/new",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an assignment",
)
def create_assignment(
    req: CreateAssignmentRequest,
    assignment_manager: AssignmentManagerDep,
    current_user: User = Depends(require_lecturer),
) -> AssignmentResponse:
    """Create an assignment owned by the calling lecturer.

    Published assignments get an assignment code immediately; drafts get one
    when they are published.
    """
    model = assignment_manager.create_assignment(req, current_user.staff_id)
    return AssignmentResponse(assignment=Assignment.model_validate(model))


@router.get("/all", response_model=AssignmentListResponse, summary="List assignments")
def all_assignments(
    assignment_manager: AssignmentManagerDep,
    current_user: User = Depends(get_current_user),
) -> AssignmentListResponse:
    models = assignment_manager.list_assignments()
    return AssignmentListResponse(assignments=[Assignment.model_validate(m) for m in models])


@router.get("/total", summary="Count assignments")
def total_assignments(
    assignment_manager: AssignmentManagerDep,
    current_user: User = Depends(get_current_user),
) -> dict:
    return {"totalAssignments": assignment_manager.count_assignments()}


@router.put("/update", response_model=AssignmentResponse, summary="Update an assignment")
def update_assignment(
    req: UpdateAssignmentRequest,
    assignment_manager: AssignmentManagerDep,
    current_user: User = Depends(require_lecturer),
) -> AssignmentResponse:
    model = assignment_manager.update_assignment(req, current_user.staff_id)
    return AssignmentResponse(assignment=Assignment.model_validate(model))


@router.delete("/clear", summary="Delete an assignment")
def delete_assignment(
    req: DeleteAssignmentRequest,
    assignment_manager: AssignmentManagerDep,
    current_user: User = Depends(require_lecturer),
) -> dict:
    assignment_manager.delete_assignment(req.assignment_code, current_user.staff_id)
    return {"message": "Assignment deleted successfully."}
