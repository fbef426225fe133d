"""Submission management utilities."""

import logging
from datetime import datetime
from typing import List, Optional

import pytz
from sqlalchemy import func
from sqlalchemy.orm import Session

from core.exceptions import MailDeliveryError
from models.assignment import AssignmentModel
from models.submission import SubmissionModel
from models.user import UserModel
from schemas.submission import SubmissionCount
from schemas.user import Role
from utils.mailer import Mailer

logger = logging.getLogger(__name__)


class SubmissionManager:
    """Manages submission rows and the per-upload student confirmation."""

    def __init__(self, db: Session, mailer: Optional[Mailer] = None):
        self.db = db
        self.mailer = mailer

    def create_submission(self, url: str, student_id: str, assignment_code: str) -> SubmissionModel:
        """Record one uploaded file and confirm it to the student by email.

        The confirmation is best effort: a delivery failure is logged and the
        submission is kept.

        Args:
            url: Public URL of the stored file.
            student_id: Staff id of the submitting student.
            assignment_code: Code of the assignment.

        Returns:
            The created SubmissionModel.
        """
        now = datetime.now(pytz.utc).isoformat()
        model = SubmissionModel(
            url=url,
            student_id=student_id,
            assignment_code=assignment_code,
            email_sent=False,
            created_at=now,
            updated_at=now,
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        logger.info("Created submission %s for %s/%s", model.id, assignment_code, student_id)

        self._alert_student(student_id, assignment_code)
        return model

    def _alert_student(self, student_id: str, assignment_code: str) -> None:
        if self.mailer is None:
            return
        student = (
            self.db.query(UserModel)
            .filter(UserModel.staff_id == student_id, UserModel.role == Role.STUDENT.value)
            .first()
        )
        if student is None:
            logger.warning("Submission confirmation skipped, unknown student %s", student_id)
            return
        try:
            self.mailer.send_submission_to_student(
                email=student.email,
                first_name=student.first_name or "",
                last_name=student.last_name or "",
                student_id=student_id,
                assignment_code=assignment_code,
            )
        except MailDeliveryError as e:
            logger.error("Submission confirmation to %s failed: %s", student_id, e)

    def list_submissions(self, student_id: str, assignment_code: str) -> List[SubmissionModel]:
        return (
            self.db.query(SubmissionModel)
            .filter(
                SubmissionModel.student_id == student_id,
                SubmissionModel.assignment_code == assignment_code,
            )
            .order_by(SubmissionModel.id)
            .all()
        )

    def count_by_assignment(self, lecturer_id: str) -> List[SubmissionCount]:
        """Count submissions per assignment code for one lecturer's assignments."""
        rows = (
            self.db.query(SubmissionModel.assignment_code, func.count(SubmissionModel.id))
            .join(AssignmentModel, SubmissionModel.assignment)
            .filter(AssignmentModel.lecturer_id == lecturer_id)
            .group_by(SubmissionModel.assignment_code)
            .order_by(SubmissionModel.assignment_code)
            .all()
        )
        return [SubmissionCount(assignment_code=code, count=count) for code, count in rows]

    def count_submitted_assignments(self) -> int:
        """Number of distinct assignments with at least one submission."""
        return (
            self.db.query(func.count(func.distinct(SubmissionModel.assignment_code)))
            .filter(SubmissionModel.assignment_code.isnot(None))
            .scalar()
        )
