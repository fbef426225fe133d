"""Password change and reset routes."""

import base64
import binascii
import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from jose import JWTError, jwt

from api.routes.auth import create_access_token, get_current_user
from config import FRONTEND_ORIGIN, JWT_ALGORITHM, JWT_SECRET_KEY, RESET_TOKEN_EXPIRE_MINUTES
from core.dependencies import UserManagerDep
from core.exceptions import BadRequestError, ErrorCode, ForbiddenError
from schemas.user import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    User,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/password", tags=["Password"])

RESET_PURPOSE = "password_reset"


def encode_token(token: str) -> str:
    """URL-safe base64 without padding, so the token fits in a path segment."""
    return base64.urlsafe_b64encode(token.encode("utf-8")).decode("ascii").rstrip("=")


def decode_token(encoded: str) -> str:
    padding = "=" * (-len(encoded) % 4)
    return base64.urlsafe_b64decode(encoded + padding).decode("utf-8")


def verify_reset_token(encoded: str, user_id: int) -> None:
    """Check that a reset link token was issued for ``user_id``.

    Raises:
        BadRequestError: If the token is malformed, expired or for another user.
    """
    try:
        payload = jwt.decode(decode_token(encoded), JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except (JWTError, binascii.Error, UnicodeDecodeError, ValueError):
        raise BadRequestError("Invalid or expired reset token", ErrorCode.UNAUTHORIZED)
    if payload.get("purpose") != RESET_PURPOSE or payload.get("sub") != str(user_id):
        raise BadRequestError("Invalid or expired reset token", ErrorCode.UNAUTHORIZED)


@router.post("/change", summary="Change password")
def change_password(
    req: ChangePasswordRequest,
    user_manager: UserManagerDep,
    current_user: User = Depends(get_current_user),
) -> dict:
    """Set a new password for the caller and clear the change-password flag."""
    if req.user_id is not None and req.user_id != current_user.id:
        raise ForbiddenError("You can only change your own password", ErrorCode.FORBIDDEN)
    user_manager.change_password(current_user.id, req.new_password, req.confirm_password)
    return {"message": "Password changed successfully", "success": True}


@router.post("/forgot", summary="Request a password reset link")
def forgot_password(req: ForgotPasswordRequest, user_manager: UserManagerDep):
    """Email a password reset link to the account holder.

    Returns:
        The message and the generated link, or 400 with an ``errors`` list
        when the email has no account.
    """
    user = user_manager.get_user_by_email(req.email)
    if user is None:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"errors": [{"msg": "This email does not have an account"}]},
        )

    token = create_access_token(
        {"sub": str(user.id), "email": user.email, "purpose": RESET_PURPOSE},
        expires_delta=timedelta(minutes=RESET_TOKEN_EXPIRE_MINUTES),
    )
    link = f"{FRONTEND_ORIGIN}/resetPswd/{user.id}/{encode_token(token)}"
    user_manager.send_password_reset(user.email, link)
    return {"message": "Password reset link has been sent to your email", "link": link}


@router.post("/reset", summary="Reset password from an emailed link")
def reset_password(req: ResetPasswordRequest, user_manager: UserManagerDep) -> dict:
    if not req.token or not req.user_id:
        raise BadRequestError("userId and token are required", ErrorCode.UNPROCESSABLE_ENTITY)
    verify_reset_token(req.token, req.user_id)
    user_manager.change_password(req.user_id, req.new_password, req.confirm_password)
    return {"message": "Password changed successfully", "success": True}
