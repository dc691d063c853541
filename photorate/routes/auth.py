"""
Auth Routes

Registration, login and password reset.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..errors import InvalidArgument, NotFound
from ..models import User
from ..schemas import (
    AuthResponse,
    CredentialsRequest,
    ForgotPasswordRequest,
    MessageResponse,
    ResetPasswordRequest,
    UserResponse,
)
from ..services.auth import (
    authenticate,
    find_user_by_email,
    get_current_user,
    hash_password,
    issue_token,
    register_user,
)
from ..services.reset import PasswordResetService, get_reset_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["auth"])


def auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        token=issue_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: CredentialsRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Create an account and return a bearer token."""
    user = await register_user(db, data.email, data.password)
    await db.commit()
    return auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: CredentialsRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Exchange email and password for a bearer token."""
    user = await authenticate(db, data.email, data.password)
    return auth_response(user)


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    """Current user, including the point balance."""
    return UserResponse.model_validate(user)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    resets: PasswordResetService = Depends(get_reset_service),
) -> MessageResponse:
    """Start a password reset for a registered email."""
    if not data.email:
        raise InvalidArgument("Email is required")

    user = await find_user_by_email(db, data.email)
    if not user:
        raise NotFound("User not found")

    token = resets.issue(user.id)
    resets.deliver(user.email, token)
    return MessageResponse(message="Password reset link has been sent to your email")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    resets: PasswordResetService = Depends(get_reset_service),
) -> MessageResponse:
    """Set a new password using a reset token."""
    if not data.token or not data.password:
        raise InvalidArgument("Token and password are required")

    user_id = resets.consume(data.token)
    user = await db.get(User, user_id) if user_id else None
    if not user:
        raise InvalidArgument("Invalid or expired reset token")

    user.password_hash = hash_password(data.password)
    await db.commit()

    logger.info("Password reset for user %s", user.id)
    return MessageResponse(message="Password has been reset")
