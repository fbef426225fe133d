"""Hourly reconciliation of submission notifications.

Lecturers are emailed about new submissions by a background job instead of
at upload time. Each cycle:

1. loads every submission whose ``email_sent`` flag is still false,
2. drops submissions whose assignment no longer exists,
3. groups the rest by ``assignment_code|student_id`` (first seen wins),
4. for each group that has no already-notified sibling, sends one email to
   the owning lecturer and flips ``email_sent`` for the whole group.

A failed cycle is logged and rolled back; the next tick picks up whatever is
still unsent.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

import pytz
from sqlalchemy.orm import Session, joinedload

from config import NOTIFICATION_INTERVAL_SECONDS
from models.submission import SubmissionModel
from models.user import UserModel
from schemas.user import Role
from utils.mailer import Mailer

logger = logging.getLogger(__name__)


@dataclass
class SubmissionNotice:
    """Everything the lecturer email needs about one submission group."""

    title: str
    assignment_code: str
    lecturer_id: str
    lecturer_first_name: str
    lecturer_last_name: str
    lecturer_email: str
    student_first_name: str
    student_last_name: str
    student_id: str

    @property
    def key(self) -> str:
        return group_key(self.assignment_code, self.student_id)


@dataclass
class JobReport:
    """Counters describing one reconciliation cycle."""

    groups_found: int = 0
    notified: int = 0
    already_sent: int = 0
    skipped: int = 0
    failed: bool = False


def group_key(assignment_code: Optional[str], student_id: Optional[str]) -> str:
    return f"{assignment_code}|{student_id}"


class SubmissionNotificationJob:
    """One reconciliation pass over unsent submissions."""

    def __init__(self, db: Session, mailer: Mailer):
        self.db = db
        self.mailer = mailer

    def run_once(self) -> JobReport:
        """Run a full cycle.

        Returns:
            JobReport for the cycle. ``failed`` is set when the cycle was
            aborted by an error; groups notified before the error stay
            committed.
        """
        report = JobReport()
        try:
            notices = self.collect_notices()
            report.groups_found = len(notices)
            for notice in notices.values():
                self.notify_group(notice, report)
        except Exception:
            self.db.rollback()
            report.failed = True
            logger.exception("An error occurred during the submission notification cycle")
            return report

        logger.info(
            "Submission notification cycle done: %d group(s), %d notified, "
            "%d already sent, %d skipped",
            report.groups_found,
            report.notified,
            report.already_sent,
            report.skipped,
        )
        return report

    def collect_notices(self) -> Dict[str, SubmissionNotice]:
        """Group unsent submissions by assignment and student.

        Returns:
            Mapping of group key to the notice built from the first
            submission seen for that group.
        """
        submissions = (
            self.db.query(SubmissionModel)
            .options(joinedload(SubmissionModel.assignment))
            .filter(SubmissionModel.email_sent.is_(False))
            .order_by(SubmissionModel.id)
            .all()
        )

        notices: Dict[str, SubmissionNotice] = {}
        for submission in submissions:
            assignment = submission.assignment
            if assignment is None:
                continue

            key = group_key(assignment.assignment_code, submission.student_id)
            if key in notices:
                continue

            student = self._find_user(submission.student_id, Role.STUDENT)
            if student is None:
                logger.warning(
                    "Submission %s skipped, student %s not found",
                    submission.id,
                    submission.student_id,
                )
                continue

            lecturer = self._find_user(assignment.lecturer_id)
            notices[key] = SubmissionNotice(
                title=assignment.title,
                assignment_code=assignment.assignment_code,
                lecturer_id=assignment.lecturer_id,
                lecturer_first_name=(lecturer.first_name or "") if lecturer else "",
                lecturer_last_name=(lecturer.last_name or "") if lecturer else "",
                lecturer_email=lecturer.email if lecturer else "",
                student_first_name=student.first_name or "",
                student_last_name=student.last_name or "",
                student_id=student.staff_id,
            )
        return notices

    def notify_group(self, notice: SubmissionNotice, report: JobReport) -> None:
        """Email the lecturer about one group and mark the group as sent.

        A group that already has a notified sibling is left untouched, its
        unsent siblings included.
        """
        group = self.db.query(SubmissionModel).filter(
            SubmissionModel.assignment_code == notice.assignment_code,
            SubmissionModel.student_id == notice.student_id,
        )
        if group.filter(SubmissionModel.email_sent.is_(True)).first() is not None:
            report.already_sent += 1
            return

        if not notice.lecturer_email:
            logger.warning(
                "No lecturer email for %s (lecturer %s), notification skipped",
                notice.key,
                notice.lecturer_id,
            )
            report.skipped += 1
            return

        self.mailer.send_submission_to_lecturer(notice)

        group.filter(SubmissionModel.email_sent.is_(False)).update(
            {
                SubmissionModel.email_sent: True,
                SubmissionModel.updated_at: datetime.now(pytz.utc).isoformat(),
            },
            synchronize_session=False,
        )
        self.db.commit()
        report.notified += 1

    def _find_user(self, staff_id: Optional[str], role: Optional[Role] = None) -> Optional[UserModel]:
        if not staff_id:
            return None
        query = self.db.query(UserModel).filter(UserModel.staff_id == staff_id)
        if role is not None:
            query = query.filter(UserModel.role == role.value)
        return query.first()


def run_notification_cycle() -> JobReport:
    """Run one cycle with its own database session."""
    # Imported here so the job module stays importable without a configured engine
    from core.database import SessionLocal
    from core.dependencies import get_mailer

    with SessionLocal() as db:
        return SubmissionNotificationJob(db, get_mailer()).run_once()


async def run_notification_loop(interval: int = NOTIFICATION_INTERVAL_SECONDS) -> None:
    """Run the reconciliation cycle forever at a fixed interval.

    The blocking cycle runs in the default executor so the event loop keeps
    serving requests. A crashed cycle is logged and the next tick runs anyway.
    """
    loop = asyncio.get_running_loop()
    logger.info("Submission notification loop started (every %d s)", interval)
    while True:
        await asyncio.sleep(interval)
        try:
            await loop.run_in_executor(None, run_notification_cycle)
        except Exception:
            logger.exception("Submission notification cycle crashed")
