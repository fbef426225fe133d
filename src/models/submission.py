"""Submission database model."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from .base import Base


class SubmissionModel(Base):
    """A single uploaded file for an assignment."""

    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)
    url = Column(String, nullable=False)
    student_id = Column(
        String, ForeignKey("users.staff_id", ondelete="SET NULL"), index=True, nullable=True
    )
    assignment_code = Column(
        String,
        ForeignKey("assignments.assignment_code", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    email_sent = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    assignment = relationship("AssignmentModel", back_populates="submissions")
