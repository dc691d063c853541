"""
Stats Routes

Rating breakdowns for the caller's photos.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..schemas import AgeBreakdown, GenderBreakdown, PhotoStatsResponse, StatsEnvelope
from ..services.auth import get_current_user
from ..services.ratings import stats_for_photo

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/photo/{photo_id}", response_model=StatsEnvelope)
async def photo_stats(
    photo_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> StatsEnvelope:
    """Who rated this photo, by gender and age bracket."""
    stats = await stats_for_photo(db, user.id, photo_id)
    return StatsEnvelope(
        stats=PhotoStatsResponse(
            total=stats.total,
            by_gender=GenderBreakdown(**stats.by_gender),
            by_age=AgeBreakdown(**stats.by_age),
        )
    )
