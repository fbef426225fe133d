"""Assignment invitation routes."""

from fastapi import APIRouter, Depends

from api.routes.auth import require_lecturer
from core.dependencies import AssignmentManagerDep
from schemas.assignment import InviteStudentsRequest
from schemas.user import BulkResult, User

router = APIRouter(prefix="/api/invite", tags=["Invitation"])


@router.post("/assignment", response_model=BulkResult, summary="Invite students to an assignment")
def invite_students(
    req: InviteStudentsRequest,
    assignment_manager: AssignmentManagerDep,
    current_user: User = Depends(require_lecturer),
) -> BulkResult:
    """Email an invitation to every listed student and link them to the assignment.

    Unknown students or an unknown assignment code end up in
    ``skippedEntries``.
    """
    return assignment_manager.invite_students(req.student_ids, req.assignment_code)
