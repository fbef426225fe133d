"""Assignment management utilities."""

import logging
from datetime import datetime
from typing import List, Optional

import pytz
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import BadRequestError, ErrorCode, MailDeliveryError, NotFoundError
from models.assignment import AssignmentModel
from models.invitation import InvitationModel
from models.user import UserModel
from schemas.assignment import (
    CreateAssignmentRequest,
    LecturerAssignment,
    UpdateAssignmentRequest,
)
from schemas.user import BulkResult, Role
from utils.id_generator import IdGenerator
from utils.mailer import Mailer

logger = logging.getLogger(__name__)


def format_deadline(deadline: datetime) -> str:
    """Format a deadline the way invitations show it, e.g. 'March 5, 2024'."""
    return f"{deadline.strftime('%B')} {deadline.day}, {deadline.year}"


class AssignmentManager:
    """Manages assignments and assignment invitations."""

    def __init__(self, db: Session, mailer: Optional[Mailer] = None):
        self.db = db
        self.mailer = mailer

    def get_by_code(self, assignment_code: str) -> Optional[AssignmentModel]:
        return (
            self.db.query(AssignmentModel)
            .filter(AssignmentModel.assignment_code == assignment_code)
            .first()
        )

    def _get_owned(
        self,
        assignment_code: Optional[str],
        lecturer_id: str,
        assignment_id: Optional[int] = None,
    ) -> AssignmentModel:
        query = self.db.query(AssignmentModel).filter(AssignmentModel.lecturer_id == lecturer_id)
        if assignment_code:
            query = query.filter(AssignmentModel.assignment_code == assignment_code)
        else:
            query = query.filter(AssignmentModel.id == assignment_id)
        model = query.first()
        if model is None:
            raise NotFoundError(
                "Assignment not found or not authorized.", ErrorCode.ASSIGNMENT_NOT_FOUND
            )
        return model

    def create_assignment(self, req: CreateAssignmentRequest, lecturer_id: str) -> AssignmentModel:
        """Create an assignment owned by ``lecturer_id``.

        A code is issued only when the assignment is published right away.

        Raises:
            BadRequestError: If title or deadline is missing.
        """
        if not req.title or req.deadline is None:
            raise BadRequestError(
                "Title and deadline are required.", ErrorCode.UNPROCESSABLE_ENTITY
            )

        assignment_code = (
            IdGenerator(self.db).next_assignment_code() if req.is_published else None
        )
        now = datetime.now(pytz.utc).isoformat()
        model = AssignmentModel(
            assignment_code=assignment_code,
            title=req.title,
            course=req.course,
            description=req.description,
            deadline=req.deadline,
            lecturer_id=lecturer_id,
            is_published=req.is_published,
            created_at=now,
            updated_at=now,
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        logger.info("Created assignment %s for %s", model.id, lecturer_id)
        return model

    def update_assignment(self, req: UpdateAssignmentRequest, lecturer_id: str) -> AssignmentModel:
        """Update an assignment owned by ``lecturer_id``.

        The assignment is found by code, or by id for drafts that have no
        code yet. Publishing an assignment that has no code yet issues one.

        Raises:
            BadRequestError: If code and id, title or deadline is missing.
            NotFoundError: If the caller does not own such an assignment.
        """
        if (not req.assignment_code and req.id is None) or not req.title or req.deadline is None:
            raise BadRequestError(
                "AssignmentCode, title, and deadline are required.",
                ErrorCode.UNPROCESSABLE_ENTITY,
            )

        model = self._get_owned(req.assignment_code, lecturer_id, req.id)
        model.title = req.title
        model.course = req.course
        model.description = req.description
        model.deadline = req.deadline
        model.is_published = req.is_published
        if model.is_published and model.assignment_code is None:
            model.assignment_code = IdGenerator(self.db).next_assignment_code()
        model.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        self.db.refresh(model)
        logger.info("Updated assignment %s", model.assignment_code)
        return model

    def delete_assignment(self, assignment_code: Optional[str], lecturer_id: str) -> None:
        """Delete an assignment and its invitations.

        Submissions are kept; they lose their assignment reference.
        """
        if not assignment_code:
            raise BadRequestError("AssignmentCode is required.", ErrorCode.UNPROCESSABLE_ENTITY)

        model = self._get_owned(assignment_code, lecturer_id)
        self.db.delete(model)
        self.db.commit()
        logger.info("Deleted assignment %s", assignment_code)

    def list_assignments(self) -> List[AssignmentModel]:
        return self.db.query(AssignmentModel).order_by(AssignmentModel.id).all()

    def count_assignments(self) -> int:
        return self.db.query(AssignmentModel).count()

    def list_for_lecturer(self, lecturer_id: str) -> List[LecturerAssignment]:
        """List a lecturer's assignments with their distinct submitters."""
        models = (
            self.db.query(AssignmentModel)
            .filter(AssignmentModel.lecturer_id == lecturer_id)
            .order_by(AssignmentModel.id)
            .all()
        )
        results = []
        for model in models:
            student_ids = list(
                dict.fromkeys(s.student_id for s in model.submissions if s.student_id)
            )
            students = []
            if student_ids:
                students = (
                    self.db.query(UserModel)
                    .filter(UserModel.staff_id.in_(student_ids))
                    .all()
                )
            names = {s.staff_id: f"{s.first_name or ''} {s.last_name or ''}".strip() for s in students}

            item = LecturerAssignment.model_validate(model)
            item.total_submissions = len(student_ids)
            item.student_ids = student_ids
            item.student_names = list(
                dict.fromkeys(names[sid] for sid in student_ids if sid in names)
            )
            results.append(item)
        return results

    def list_for_student(self, student_id: str) -> List[AssignmentModel]:
        """List the assignments a student was invited to."""
        return (
            self.db.query(AssignmentModel)
            .join(InvitationModel, InvitationModel.assignment_code == AssignmentModel.assignment_code)
            .filter(InvitationModel.students.any(UserModel.staff_id == student_id))
            .order_by(AssignmentModel.id)
            .all()
        )

    def invite_students(self, student_ids: List[str], assignment_code: str) -> BulkResult:
        """Invite students to an assignment by email.

        Unknown students, an unknown assignment and per-student failures are
        reported in ``skipped_entries`` instead of failing the whole request.
        """
        result = BulkResult(message="Invitations processed")
        assignment = self.get_by_code(assignment_code)

        for student_id in student_ids:
            user = (
                self.db.query(UserModel)
                .filter(UserModel.staff_id == student_id, UserModel.role == Role.STUDENT.value)
                .first()
            )
            if user is None:
                result.skipped_entries.append({"studentId": student_id, "message": "User not found"})
                continue
            if assignment is None:
                result.skipped_entries.append(
                    {"studentId": student_id, "message": "Assignment not found"}
                )
                continue

            try:
                if self.mailer is not None:
                    self.mailer.send_assignment_invite(
                        user,
                        assignment.title,
                        format_deadline(assignment.deadline),
                        assignment_code,
                    )
                self._link_student(assignment, user)
            except (MailDeliveryError, SQLAlchemyError) as e:
                self.db.rollback()
                logger.error("Invitation for %s to %s failed: %s", student_id, assignment_code, e)
                result.skipped_entries.append(
                    {"studentId": student_id, "message": "Error processing invitation"}
                )
                continue

            result.successful_entries.append(
                {"studentId": student_id, "message": "Invitation sent successfully"}
            )

        return result

    def _link_student(self, assignment: AssignmentModel, user: UserModel) -> None:
        invitation = (
            self.db.query(InvitationModel)
            .filter(InvitationModel.assignment_code == assignment.assignment_code)
            .first()
        )
        if invitation is None:
            invitation = InvitationModel(
                assignment_code=assignment.assignment_code,
                created_at=datetime.now(pytz.utc).isoformat(),
            )
            self.db.add(invitation)
        if user not in invitation.students:
            invitation.students.append(user)
        self.db.commit()
