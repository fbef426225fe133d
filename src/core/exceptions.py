"""Custom exception classes for the Assignment Portal API.

This module defines application-specific exceptions following Google Python
Style Guide. Subclasses of ``HttpError`` carry the status code and error code
returned to API clients.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Machine readable error codes returned alongside error messages."""

    USER_NOT_FOUND = "1001"
    INCORRECT_PASSWORD = "1002"
    UNAUTHORIZED = "1003"
    FORBIDDEN = "1004"
    ASSIGNMENT_NOT_FOUND = "2001"
    UNPROCESSABLE_ENTITY = "2002"
    SUBMISSION_FAILED = "3001"
    INTERNAL_EXCEPTION = "5001"


class AssignmentPortalError(Exception):
    """Base exception for all Assignment Portal errors."""

    pass


class HttpError(AssignmentPortalError):
    """Error that maps directly to an HTTP response."""

    status_code = 500

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INTERNAL_EXCEPTION):
        """Initialize the exception.

        Args:
            message: Human readable message returned to the client.
            error_code: Machine readable error code.
        """
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class NotFoundError(HttpError):
    """Raised when a requested entity does not exist."""

    status_code = 404


class BadRequestError(HttpError):
    """Raised when request validation fails."""

    status_code = 400


class UnauthorizedError(HttpError):
    """Raised when authentication is missing or invalid."""

    status_code = 401


class ForbiddenError(HttpError):
    """Raised when the caller's role does not allow the operation."""

    status_code = 403


class MailDeliveryError(AssignmentPortalError):
    """Raised when an email cannot be handed over to the SMTP server."""

    pass


class StorageError(AssignmentPortalError):
    """Raised when an object cannot be written to storage."""

    pass
