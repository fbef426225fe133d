"""User management utilities.

This module provides user management functionality including user storage,
password hashing, bulk registration of lecturers and students, and user
authentication.
"""

import logging
import secrets
from datetime import datetime
from typing import Iterable, List, Optional

import bcrypt
import pytz
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import MIN_PASSWORD_LENGTH, USER_PAGE_SIZE
from core.exceptions import (
    BadRequestError,
    ErrorCode,
    MailDeliveryError,
    NotFoundError,
)
from models.assignment import AssignmentModel
from models.submission import SubmissionModel
from models.user import UserModel
from schemas.user import BulkResult, RegisterEntry, Role, User, UserUpdate
from utils.id_generator import IdGenerator
from utils.mailer import Mailer

logger = logging.getLogger(__name__)

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS = 12

# Length in bytes of the random temporary password sent with invites
TEMPORARY_PASSWORD_BYTES = 9


def generate_temporary_password() -> str:
    return secrets.token_urlsafe(TEMPORARY_PASSWORD_BYTES)


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session, mailer: Optional[Mailer] = None):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
            mailer: Mailer used for invitation and reset emails.
        """
        self.db = db
        self.mailer = mailer

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        # Truncate password if it exceeds bcrypt's 72-byte limit
        password_bytes = password.encode("utf-8")
        if len(password_bytes) > 72:
            logger.warning(
                "Password exceeds 72 bytes (%d bytes), truncating", len(password_bytes)
            )
            password_bytes = password_bytes[:72]

        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        hashed = bcrypt.hashpw(password_bytes, salt)
        return hashed.decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        password_bytes = plain_password.encode("utf-8")[:72]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError as e:
            logger.error(f"Password verification error: {e}")
            return False

    # --- Lookups ---

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get a user by primary key.

        Args:
            user_id: User ID to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = self.db.query(UserModel).filter(UserModel.id == user_id).first()
        if model:
            return User.model_validate(model)
        return None

    def get_user_by_email(self, email: str) -> Optional[UserModel]:
        return self.db.query(UserModel).filter(UserModel.email == email).first()

    def get_user_by_staff_id(self, staff_id: str) -> Optional[UserModel]:
        return self.db.query(UserModel).filter(UserModel.staff_id == staff_id).first()

    def authenticate(self, email_or_id: str, password: str) -> User:
        """Check login credentials.

        Args:
            email_or_id: Staff id or email address.
            password: Plain text password.

        Returns:
            The authenticated user. Admins never carry the change-password flag.

        Raises:
            NotFoundError: If no user matches the identifier.
            BadRequestError: If the password is wrong.
        """
        model = (
            self.db.query(UserModel)
            .filter(or_(UserModel.staff_id == email_or_id, UserModel.email == email_or_id))
            .first()
        )
        if model is None:
            raise NotFoundError("User not found", ErrorCode.USER_NOT_FOUND)

        if not self.verify_password(password, model.password_hash):
            raise BadRequestError("Incorrect password", ErrorCode.INCORRECT_PASSWORD)

        user = User.model_validate(model)
        if user.role == Role.ADMIN:
            user.change_password = False
        return user

    # --- Registration ---

    def create_user(
        self,
        email: str,
        password: str,
        role: Role,
        staff_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        change_password: bool = True,
    ) -> UserModel:
        """Insert a user row and commit it."""
        model = UserModel(
            staff_id=staff_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            password_hash=self.hash_password(password),
            role=role.value,
            change_password=change_password,
            created_at=datetime.now(pytz.utc).isoformat(),
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        logger.info("Created %s user: %s", role.value.lower(), staff_id)
        return model

    def register_users(self, entries: Iterable[RegisterEntry], role: Role) -> BulkResult:
        """Register lecturers or students in bulk.

        Entries whose email is already taken are skipped, not treated as
        errors. Every created account gets a temporary password by email.

        Args:
            entries: Rows with first name, last name and email.
            role: Either ``Role.LECTURER`` or ``Role.STUDENT``.

        Returns:
            BulkResult listing successful and skipped entries.
        """
        if role not in (Role.LECTURER, Role.STUDENT):
            raise ValueError(f"Cannot bulk register role {role}")

        label = "Lecturer" if role == Role.LECTURER else "Student"
        generator = IdGenerator(self.db)
        result = BulkResult(
            message="Lecturers processed" if role == Role.LECTURER else "Students processed"
        )

        for entry in entries:
            if self.get_user_by_email(entry.email) is not None:
                result.skipped_entries.append(
                    {"email": entry.email, "message": "Email already exists"}
                )
                continue

            temporary_password = generate_temporary_password()
            try:
                user = self.create_user(
                    email=entry.email,
                    password=temporary_password,
                    role=role,
                    staff_id=generator.next_staff_id(role),
                    first_name=entry.first_name,
                    last_name=entry.last_name,
                )
            except IntegrityError as e:
                self.db.rollback()
                if self.get_user_by_email(entry.email) is not None:
                    # Email taken between the check and the insert
                    message = "Email already exists"
                else:
                    logger.error("Could not register %s: %s", entry.email, e)
                    message = "Staff ID could not be assigned, please retry"
                result.skipped_entries.append({"email": entry.email, "message": message})
                continue

            message = f"{label} created successfully"
            if self.mailer is not None:
                try:
                    if role == Role.LECTURER:
                        self.mailer.send_lecturer_invite(user, temporary_password)
                    else:
                        self.mailer.send_student_invite(user, temporary_password)
                except MailDeliveryError as e:
                    logger.error("Invitation email for %s failed: %s", user.staff_id, e)
                    message = f"{label} created, invitation email could not be sent"

            result.successful_entries.append(
                {"email": entry.email, "staffId": user.staff_id, "message": message}
            )

        return result

    def ensure_admin(
        self,
        email: str,
        password: str,
        staff_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> UserModel:
        """Create the admin account unless a user with that email exists."""
        existing = self.get_user_by_email(email)
        if existing is not None:
            return existing
        return self.create_user(
            email=email,
            password=password,
            role=Role.ADMIN,
            staff_id=staff_id,
            first_name=first_name,
            last_name=last_name,
            change_password=False,
        )

    # --- Listing and maintenance ---

    def list_users(self, role: Role, skip: int = 0, take: int = USER_PAGE_SIZE) -> List[User]:
        models = (
            self.db.query(UserModel)
            .filter(UserModel.role == role.value)
            .order_by(UserModel.id)
            .offset(max(skip, 0))
            .limit(take)
            .all()
        )
        return [User.model_validate(m) for m in models]

    def count_users(self, role: Role) -> int:
        return self.db.query(UserModel).filter(UserModel.role == role.value).count()

    def update_user(self, staff_id: str, role: Role, updates: UserUpdate) -> User:
        """Update contact details of a lecturer or student.

        Raises:
            NotFoundError: If no user with that staff id and role exists.
        """
        model = (
            self.db.query(UserModel)
            .filter(UserModel.staff_id == staff_id, UserModel.role == role.value)
            .first()
        )
        if model is None:
            raise NotFoundError(f"User '{staff_id}' not found", ErrorCode.USER_NOT_FOUND)

        for field, value in updates.model_dump(exclude_none=True).items():
            setattr(model, field, value)
        self.db.commit()
        self.db.refresh(model)
        logger.info("Updated user: %s", staff_id)
        return User.model_validate(model)

    def delete_users(self, staff_ids: List[str], role: Role) -> int:
        """Delete lecturers or students by staff id.

        Deleting a lecturer also deletes the lecturer's assignments and their
        invitations. Deleting a student drops the student's invitation links;
        existing submissions are kept with an empty student reference.

        Returns:
            Number of deleted users.

        Raises:
            NotFoundError: If none of the ids belong to a user with that role.
        """
        models = (
            self.db.query(UserModel)
            .filter(UserModel.staff_id.in_(staff_ids), UserModel.role == role.value)
            .all()
        )
        if not models:
            label = "Lecturers" if role == Role.LECTURER else "Students"
            raise NotFoundError(f"{label} not found", ErrorCode.USER_NOT_FOUND)

        found_ids = [m.staff_id for m in models]
        if role == Role.LECTURER:
            assignments = (
                self.db.query(AssignmentModel)
                .filter(AssignmentModel.lecturer_id.in_(found_ids))
                .all()
            )
            for assignment in assignments:
                self.db.delete(assignment)
        else:
            self.db.query(SubmissionModel).filter(
                SubmissionModel.student_id.in_(found_ids)
            ).update({SubmissionModel.student_id: None}, synchronize_session=False)

        for model in models:
            self.db.delete(model)
        self.db.commit()
        logger.info("Deleted %d %s user(s)", len(models), role.value.lower())
        return len(models)

    # --- Passwords ---

    def change_password(
        self,
        user_id: Optional[int],
        new_password: Optional[str],
        confirm_password: Optional[str],
    ) -> None:
        """Set a new password and clear the change-password flag.

        Raises:
            BadRequestError: On missing fields, mismatch or a short password.
            NotFoundError: If the user does not exist.
        """
        if not user_id or not new_password or not confirm_password:
            raise BadRequestError(
                "userId, newPassword, and confirmPassword are required",
                ErrorCode.UNPROCESSABLE_ENTITY,
            )
        if new_password != confirm_password:
            raise BadRequestError(
                "New password and confirm password do not match",
                ErrorCode.UNPROCESSABLE_ENTITY,
            )
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise BadRequestError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
                ErrorCode.UNPROCESSABLE_ENTITY,
            )

        model = self.db.query(UserModel).filter(UserModel.id == user_id).first()
        if model is None:
            raise NotFoundError("User not found", ErrorCode.USER_NOT_FOUND)

        model.password_hash = self.hash_password(new_password)
        model.change_password = False
        self.db.commit()
        logger.info("Password changed for user: %s", model.staff_id)

    def send_password_reset(self, email: str, link: str) -> None:
        if self.mailer is None:
            raise RuntimeError("No mailer configured")
        self.mailer.send_password_reset(email, link)
        logger.info("Password reset link sent to %s", email)
