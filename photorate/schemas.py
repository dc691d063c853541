"""
Pydantic Schemas

Request/Response models for the API. Field names travel as camelCase on
the wire.
"""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# Auth Schemas
# ============================================================================

class CredentialsRequest(CamelModel):
    """Register/login request."""
    email: str | None = None
    password: str | None = None


class UserResponse(CamelModel):
    """Public user details."""
    id: UUID
    email: str
    points: int
    created_at: datetime


class AuthResponse(CamelModel):
    """Response after register/login."""
    token: str
    user: UserResponse


class ForgotPasswordRequest(CamelModel):
    email: str | None = None


class ResetPasswordRequest(CamelModel):
    token: str | None = None
    password: str | None = None


class MessageResponse(CamelModel):
    message: str


# ============================================================================
# Photo Schemas
# ============================================================================

class PhotoResponse(CamelModel):
    """Photo details response."""
    id: UUID
    user_id: UUID
    original_filename: str
    gender: str
    age: int
    is_active: bool
    created_at: datetime
    url: str  # Presigned URL for browser access


class PhotoUploadResponse(CamelModel):
    photo: PhotoResponse


class PhotoListResponse(CamelModel):
    photos: list[PhotoResponse]


class PhotoToRateResponse(CamelModel):
    """Next photo to rate: one element, or empty when nothing is left."""
    photos: list[PhotoResponse] = []


class RateRequest(CamelModel):
    """Request to rate a photo."""
    photo_id: UUID


class RateResponse(CamelModel):
    message: str
    points: int


class ToggleActiveRequest(CamelModel):
    """Request to show or hide one of the caller's photos."""
    photo_id: UUID
    is_active: bool


class ToggleActiveResponse(CamelModel):
    message: str
    photo: PhotoResponse


# ============================================================================
# Stats Schemas
# ============================================================================

class GenderBreakdown(CamelModel):
    male: int = 0
    female: int = 0
    other: int = 0


class AgeBreakdown(CamelModel):
    under20: int = 0
    between20and30: int = 0
    over30: int = 0


class PhotoStatsResponse(CamelModel):
    """Rating breakdown by rater demographics."""
    total: int
    by_gender: GenderBreakdown
    by_age: AgeBreakdown


class StatsEnvelope(CamelModel):
    stats: PhotoStatsResponse


# ============================================================================
# Health/Status Schemas
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    services: dict[str, str] = {}
