"""Submission query routes."""

from fastapi import APIRouter, Depends

from api.routes.auth import get_current_user, require_admin, require_lecturer
from core.dependencies import SubmissionManagerDep
from schemas.submission import (
    Submission,
    SubmissionCountsResponse,
    SubmissionListResponse,
)
from schemas.user import User

router = APIRouter(prefix="/api/submissions", tags=["Submission"])


@router.get(
    "/assignments",
    response_model=SubmissionCountsResponse,
    summary="Count submissions per assignment of the caller",
)
def count_submissions(
    submission_manager: SubmissionManagerDep,
    current_user: User = Depends(require_lecturer),
) -> SubmissionCountsResponse:
    return SubmissionCountsResponse(
        submission_counts=submission_manager.count_by_assignment(current_user.staff_id)
    )


@router.get("/total", summary="Count submitted assignments")
def count_submitted_assignments(
    submission_manager: SubmissionManagerDep,
    current_user: User = Depends(require_admin),
) -> dict:
    return {"assignmentCount": submission_manager.count_submitted_assignments()}


@router.get(
    "/{student_id}/{assignment_code}",
    response_model=SubmissionListResponse,
    summary="List a student's submissions for an assignment",
)
def list_submissions(
    student_id: str,
    assignment_code: str,
    submission_manager: SubmissionManagerDep,
    current_user: User = Depends(get_current_user),
) -> SubmissionListResponse:
    models = submission_manager.list_submissions(student_id, assignment_code)
    return SubmissionListResponse(submissions=[Submission.model_validate(m) for m in models])
