"""
Photo Routes

Uploading, rating and showing/hiding photos.
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..errors import InvalidArgument, NotFound
from ..models import Photo, User
from ..schemas import (
    PhotoListResponse,
    PhotoResponse,
    PhotoToRateResponse,
    PhotoUploadResponse,
    RateRequest,
    RateResponse,
    ToggleActiveRequest,
    ToggleActiveResponse,
)
from ..services import photos as photo_service
from ..services import ratings
from ..services.auth import get_current_user
from ..services.storage import StorageService, get_storage_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/photos", tags=["photos"])


# ============================================================================
# Helper functions
# ============================================================================

def photo_to_response(photo: Photo, storage: StorageService) -> PhotoResponse:
    """Convert Photo model to response schema."""
    return PhotoResponse(
        id=photo.id,
        user_id=photo.user_id,
        original_filename=photo.original_filename,
        gender=photo.gender,
        age=photo.age,
        is_active=photo.is_active,
        created_at=photo.created_at,
        url=storage.get_presigned_url(photo.s3_key),
    )


# ============================================================================
# Upload and listing
# ============================================================================

@router.post("/upload", response_model=PhotoUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_photo(
    photo: Annotated[UploadFile | None, File(description="Photo to upload")] = None,
    gender: Annotated[str | None, Form()] = None,
    age: Annotated[str | None, Form()] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
) -> PhotoUploadResponse:
    """
    Upload a photo tagged with the owner's gender and age.

    The photo starts hidden; the owner activates it once they have points.
    """
    gender, age = photo_service.validate_tags(gender, age)
    if photo is None:
        raise InvalidArgument("No file uploaded")

    filename = photo.filename or "unknown"
    storage.check_upload(filename, photo.size)

    # Read one byte past the limit so an undeclared oversize body is still caught
    content = await photo.read(storage.max_upload_bytes + 1)
    s3_key = storage.store_photo(content, filename, photo.content_type)

    try:
        record = await photo_service.create_photo(
            db,
            owner_id=user.id,
            s3_key=s3_key,
            original_filename=filename,
            gender=gender,
            age=age,
            content_type=photo.content_type,
        )
        await db.commit()
    except Exception:
        logger.warning("Saving photo record failed, removing stored object %s", s3_key)
        storage.delete_file(s3_key)
        raise

    return PhotoUploadResponse(photo=photo_to_response(record, storage))


@router.get("/my-photos", response_model=PhotoListResponse)
async def my_photos(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
) -> PhotoListResponse:
    """List the caller's photos, newest first."""
    records = await photo_service.list_user_photos(db, user.id)
    return PhotoListResponse(photos=[photo_to_response(p, storage) for p in records])


@router.get("/{photo_id}/file")
async def photo_file(
    photo_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
) -> Response:
    """Photo bytes, for the owner or for anyone while the photo is active."""
    photo = await photo_service.get_viewable_photo(db, user.id, photo_id)
    if not storage.file_exists(photo.s3_key):
        raise NotFound("Photo file not found")

    return Response(
        content=storage.download_file(photo.s3_key),
        media_type=photo.content_type or "application/octet-stream",
    )


# ============================================================================
# Rating
# ============================================================================

@router.get("/to-rate", response_model=PhotoToRateResponse)
async def photo_to_rate(
    gender: str | None = None,
    minAge: str | None = None,  # noqa: N803
    maxAge: str | None = None,  # noqa: N803
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
) -> PhotoToRateResponse:
    """
    Get one active photo the caller has not rated yet.

    The age range applies only when both minAge and maxAge are given.
    """
    photo = await ratings.select_photo_to_rate(
        db, user.id, gender=gender, min_age=minAge, max_age=maxAge
    )
    if not photo:
        return PhotoToRateResponse(photos=[])
    return PhotoToRateResponse(photos=[photo_to_response(photo, storage)])


@router.post("/rate", response_model=RateResponse)
async def rate_photo(
    data: RateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RateResponse:
    """Rate a photo: +1 point for the caller, -1 for the photo's owner."""
    await ratings.rate_photo(db, user.id, data.photo_id)
    points = await ratings.get_balance(db, user.id)
    return RateResponse(message="Photo rated successfully", points=points)


@router.post("/toggle-active", response_model=ToggleActiveResponse)
async def toggle_active(
    data: ToggleActiveRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
) -> ToggleActiveResponse:
    """Show or hide one of the caller's photos. Showing requires a positive balance."""
    photo = await ratings.set_photo_active(db, user.id, data.photo_id, data.is_active)
    return ToggleActiveResponse(
        message="Photo status updated",
        photo=photo_to_response(photo, storage),
    )
