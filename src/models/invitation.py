"""Assignment invitation database models."""

from sqlalchemy import Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship
from .base import Base

invitation_students = Table(
    "invitation_students",
    Base.metadata,
    Column(
        "invitation_id",
        Integer,
        ForeignKey("invitations.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "student_id",
        String,
        ForeignKey("users.staff_id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class InvitationModel(Base):
    """Links an assignment to the students invited to it."""

    __tablename__ = "invitations"

    id = Column(Integer, primary_key=True, index=True)
    assignment_code = Column(
        String,
        ForeignKey("assignments.assignment_code", ondelete="CASCADE"),
        unique=True,
        index=True,
        nullable=False,
    )
    created_at = Column(String, nullable=False)

    assignment = relationship("AssignmentModel", back_populates="invitations")
    students = relationship(
        "UserModel",
        secondary=invitation_students,
        back_populates="invitations",
    )
