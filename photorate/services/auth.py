"""
Auth Service

Password hashing, registration, login and bearer tokens.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photorate.config import get_settings
from photorate.database import get_db
from photorate.errors import AuthFailure, Conflict, InvalidArgument
from photorate.models import User

logger = logging.getLogger(__name__)
settings = get_settings()

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def issue_token(user_id: uuid.UUID) -> str:
    """Create a signed bearer token for the user."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    return jwt.encode(
        {"sub": str(user_id), "exp": expire},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def verify_token(token: str) -> uuid.UUID:
    """
    Resolve a bearer token to a user id.

    Raises:
        AuthFailure: token is malformed, expired or badly signed
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
        return uuid.UUID(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise AuthFailure("Authentication failed")


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


async def register_user(session: AsyncSession, email: str | None, password: str | None) -> User:
    """
    Create an account with the starting balance.

    Raises:
        InvalidArgument: email or password missing
        Conflict: email already registered
    """
    email = _normalize_email(email)
    if not email or not password:
        raise InvalidArgument("Email and password are required")

    existing = await session.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none():
        raise Conflict("User already exists")

    user = User(
        email=email,
        password_hash=hash_password(password),
        points=settings.initial_points,
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise Conflict("User already exists")

    logger.info("Registered user %s", user.id)
    return user


async def authenticate(session: AsyncSession, email: str | None, password: str | None) -> User:
    """
    Check an email/password pair.

    Raises:
        InvalidArgument: email or password missing
        AuthFailure: unknown email or wrong password
    """
    email = _normalize_email(email)
    if not email or not password:
        raise InvalidArgument("Email and password are required")

    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        raise AuthFailure("Invalid credentials")
    return user


async def find_user_by_email(session: AsyncSession, email: str | None) -> User | None:
    result = await session.execute(select(User).where(User.email == _normalize_email(email)))
    return result.scalar_one_or_none()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """FastAPI dependency resolving the bearer credential to a User."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthFailure("Authentication failed")

    user_id = verify_token(credentials.credentials)
    user = await db.get(User, user_id)
    if not user:
        raise AuthFailure("Authentication failed")
    return user
