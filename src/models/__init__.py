"""Database models.

Importing this package registers every model with ``Base.metadata``.
"""

from .base import Base
from .user import UserModel
from .assignment import AssignmentModel
from .submission import SubmissionModel
from .invitation import InvitationModel, invitation_students
from .id_counter import IdCounterModel

__all__ = [
    "Base",
    "UserModel",
    "AssignmentModel",
    "SubmissionModel",
    "InvitationModel",
    "invitation_students",
    "IdCounterModel",
]
