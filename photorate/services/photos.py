"""
Photo Service

Creating and listing a user's own photos.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from photorate import metrics
from photorate.config import get_settings
from photorate.errors import InvalidArgument, NotFound
from photorate.models import Photo
from photorate.services.ratings import parse_gender

logger = logging.getLogger(__name__)
settings = get_settings()


def parse_age(value: Any) -> int:
    """Validate the age tag of an upload."""
    if value is None or value == "":
        raise InvalidArgument("Gender and age are required")
    try:
        age = int(value)
    except (TypeError, ValueError):
        raise InvalidArgument("age must be a number")
    if age <= 0:
        raise InvalidArgument("age must be positive")
    return age


def validate_tags(gender: Any, age: Any) -> tuple[str, int]:
    """
    Check the demographic tags of an upload.

    Raises:
        InvalidArgument: a tag is missing or malformed
    """
    if not gender:
        raise InvalidArgument("Gender and age are required")
    return parse_gender(gender), parse_age(age)


async def create_photo(
    session: AsyncSession,
    owner_id: uuid.UUID,
    s3_key: str,
    original_filename: str,
    gender: str,
    age: int,
    content_type: str | None = None,
) -> Photo:
    """Record an uploaded photo. New photos start hidden unless configured otherwise."""
    photo = Photo(
        user_id=owner_id,
        s3_key=s3_key,
        original_filename=original_filename,
        content_type=content_type,
        gender=gender,
        age=age,
        is_active=settings.photo_active_by_default,
    )
    session.add(photo)
    await session.flush()

    metrics.uploads_total.inc()
    logger.info("User %s uploaded photo %s", owner_id, photo.id)
    return photo


async def list_user_photos(session: AsyncSession, owner_id: uuid.UUID) -> list[Photo]:
    """All photos owned by a user, newest first."""
    result = await session.execute(
        select(Photo)
        .where(Photo.user_id == owner_id)
        .order_by(Photo.created_at.desc())
    )
    return list(result.scalars().all())


async def get_viewable_photo(
    session: AsyncSession, viewer_id: uuid.UUID, photo_id: uuid.UUID
) -> Photo:
    """
    Fetch a photo the viewer may see: their own, or anyone's active photo.

    Raises:
        NotFound: no such photo, or it is hidden from this viewer
    """
    photo = await session.get(Photo, photo_id)
    if photo is None or (photo.user_id != viewer_id and not photo.is_active):
        raise NotFound("Photo not found")
    return photo
