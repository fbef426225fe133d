"""Assignment database model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from .base import Base


class AssignmentModel(Base):
    """Assignment owned by a lecturer.

    ``assignment_code`` stays empty until the assignment is published.
    """

    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    assignment_code = Column(String, unique=True, index=True, nullable=True)
    title = Column(String, nullable=False)
    course = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    deadline = Column(DateTime, nullable=False)
    lecturer_id = Column(String, ForeignKey("users.staff_id"), index=True, nullable=False)
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    submissions = relationship("SubmissionModel", back_populates="assignment")
    invitations = relationship(
        "InvitationModel",
        back_populates="assignment",
        cascade="all, delete-orphan",
    )
