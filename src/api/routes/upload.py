"""File upload routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from api.routes.auth import require_student
from core.dependencies import AssignmentManagerDep, StorageDep, SubmissionManagerDep
from core.exceptions import BadRequestError, ErrorCode, ForbiddenError, NotFoundError
from schemas.submission import Submission, UploadResponse
from schemas.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["Upload"])


@router.post("/assignment", response_model=UploadResponse, summary="Upload submission files")
def upload_assignment(
    storage: StorageDep,
    assignment_manager: AssignmentManagerDep,
    submission_manager: SubmissionManagerDep,
    assignment_code: str = Form(..., alias="assignmentCode"),
    student_id: Optional[str] = Form(None, alias="studentId"),
    files: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(require_student),
) -> UploadResponse:
    """Store every uploaded file and record one submission per file.

    Each stored file becomes a submission row and the student receives a
    confirmation email per row. Lecturers are notified later by the hourly
    notification job.

    Raises:
        BadRequestError: If no files were sent.
        ForbiddenError: If ``studentId`` names another student.
        NotFoundError: If the assignment code is unknown.
    """
    if not files:
        raise BadRequestError("No files provided for submission", ErrorCode.SUBMISSION_FAILED)
    if student_id and student_id != current_user.staff_id:
        raise ForbiddenError(
            "Students can only upload their own submissions", ErrorCode.FORBIDDEN
        )
    if assignment_manager.get_by_code(assignment_code) is None:
        raise NotFoundError("Assignment not found", ErrorCode.ASSIGNMENT_NOT_FOUND)

    file_urls = []
    for upload in files:
        data = upload.file.read()
        file_urls.append(storage.upload(data, upload.filename, upload.content_type))

    submissions = [
        submission_manager.create_submission(url, current_user.staff_id, assignment_code)
        for url in file_urls
    ]
    logger.info(
        "%s uploaded %d file(s) for %s", current_user.staff_id, len(file_urls), assignment_code
    )
    return UploadResponse(
        message="Upload successful",
        file_urls=file_urls,
        submissions=[Submission.model_validate(s) for s in submissions],
    )
