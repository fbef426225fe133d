"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes,
following Google Python Style Guide and FastAPI best practices.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from core.database import get_db
from utils import assignment_manager
from utils import submission_manager
from utils import user_manager
from utils.mailer import Mailer
from utils.storage import S3Storage

# Process-wide singletons for outbound services
_mailer_instance: Mailer = None
_storage_instance: S3Storage = None


def get_mailer() -> Mailer:
    """Get Mailer singleton instance.

    Returns:
        Mailer configured from environment variables.
    """
    global _mailer_instance
    if _mailer_instance is None:
        _mailer_instance = Mailer.from_config()
    return _mailer_instance


def get_storage() -> S3Storage:
    """Get S3Storage singleton instance.

    Returns:
        S3Storage configured from environment variables.
    """
    global _storage_instance
    if _storage_instance is None:
        _storage_instance = S3Storage.from_config()
    return _storage_instance


def get_user_manager(
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.
        mailer: Shared mailer.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db, mailer)


def get_assignment_manager(
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> assignment_manager.AssignmentManager:
    """Get AssignmentManager instance with request-scoped DB session."""
    return assignment_manager.AssignmentManager(db, mailer)


def get_submission_manager(
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> submission_manager.SubmissionManager:
    """Get SubmissionManager instance with request-scoped DB session."""
    return submission_manager.SubmissionManager(db, mailer)


# Type aliases for dependency injection
UserManagerDep = Annotated[
    user_manager.UserManager, Depends(get_user_manager)
]
AssignmentManagerDep = Annotated[
    assignment_manager.AssignmentManager, Depends(get_assignment_manager)
]
SubmissionManagerDep = Annotated[
    submission_manager.SubmissionManager, Depends(get_submission_manager)
]
StorageDep = Annotated[S3Storage, Depends(get_storage)]
