"""Submission schemas."""

from typing import List, Optional

from schemas.base import CamelModel


class Submission(CamelModel):
    id: int
    url: str
    student_id: Optional[str] = None
    assignment_code: Optional[str] = None
    email_sent: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SubmissionListResponse(CamelModel):
    submissions: List[Submission]


class UploadResponse(CamelModel):
    message: str
    file_urls: List[str]
    submissions: List[Submission]


class SubmissionCount(CamelModel):
    assignment_code: Optional[str] = None
    count: int


class SubmissionCountsResponse(CamelModel):
    submission_counts: List[SubmissionCount]
