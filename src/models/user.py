"""User database model.

This module defines the User database model using SQLAlchemy.
"""

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship
from .base import Base


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False)  # 'ADMIN', 'LECTURER' or 'STUDENT'
    change_password = Column(Boolean, nullable=False, default=True)
    created_at = Column(String, nullable=False)  # ISO format string

    invitations = relationship(
        "InvitationModel",
        secondary="invitation_students",
        back_populates="students",
    )
