"""
Rating Service

The points economy: photo selection, the rating transaction, the activation
gate and per-photo statistics. Every operation receives its session
explicitly; the rating transaction and the activation gate commit their own
unit of work.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photorate import metrics
from photorate.errors import Conflict, InsufficientBalance, InvalidArgument, InvalidOperation, NotFound
from photorate.models import Gender, Photo, Rating, User

logger = logging.getLogger(__name__)


@dataclass
class PhotoStats:
    """Rating breakdown for one photo."""
    total: int = 0
    by_gender: dict[str, int] = field(
        default_factory=lambda: {g.value: 0 for g in Gender}
    )
    by_age: dict[str, int] = field(
        default_factory=lambda: {"under20": 0, "between20and30": 0, "over30": 0}
    )


# ============================================================================
# Helpers
# ============================================================================

def parse_age_bound(value: Any, name: str) -> int | None:
    """Coerce an optional age bound to int."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidArgument(f"{name} must be a number")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{name} must be a number")


def parse_gender(value: Any) -> str | None:
    if value is None or value == "":
        return None
    try:
        return Gender(value).value
    except ValueError:
        raise InvalidArgument("gender must be one of: male, female, other")


def age_bucket(age: int) -> str:
    if age < 20:
        return "under20"
    if age <= 30:
        return "between20and30"
    return "over30"


async def _get_user(session: AsyncSession, user_id: uuid.UUID) -> User:
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFound("User not found")
    return user


async def _get_owned_photo(session: AsyncSession, owner_id: uuid.UUID, photo_id: uuid.UUID) -> Photo:
    result = await session.execute(
        select(Photo).where(Photo.id == photo_id, Photo.user_id == owner_id)
    )
    photo = result.scalar_one_or_none()
    if not photo:
        raise NotFound("Photo not found or not owned by user")
    return photo


# ============================================================================
# Matching
# ============================================================================

async def select_photo_to_rate(
    session: AsyncSession,
    rater_id: uuid.UUID,
    gender: Any = None,
    min_age: Any = None,
    max_age: Any = None,
) -> Photo | None:
    """
    Pick one active photo the rater may rate.

    Candidates are active photos owned by someone else that the rater has
    not rated yet, optionally narrowed by gender and by an inclusive age
    range. The age range only applies when both bounds are given; a lone
    bound is ignored. No ordering is guaranteed among candidates.

    Raises:
        NotFound: rater does not exist
        InvalidArgument: unknown gender or non-numeric age bound
    """
    gender = parse_gender(gender)
    min_age = parse_age_bound(min_age, "minAge")
    max_age = parse_age_bound(max_age, "maxAge")

    await _get_user(session, rater_id)

    already_rated = exists().where(
        Rating.photo_id == Photo.id,
        Rating.rater_id == rater_id,
    )
    query = select(Photo).where(
        Photo.user_id != rater_id,
        Photo.is_active.is_(True),
        ~already_rated,
    )

    if gender:
        query = query.where(Photo.gender == gender)

    if min_age is not None and max_age is not None:
        query = query.where(Photo.age >= min_age, Photo.age <= max_age)
    elif min_age is not None or max_age is not None:
        logger.debug("Ignoring single age bound (min=%s, max=%s)", min_age, max_age)

    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none()


# ============================================================================
# Rating transaction
# ============================================================================

async def rate_photo(
    session: AsyncSession,
    rater_id: uuid.UUID,
    photo_id: uuid.UUID,
) -> Rating:
    """
    Record a rating and move one point from the photo owner to the rater.

    All preconditions are checked before anything is written. The ledger
    insert and both balance deltas are committed together; if any step fails
    the whole unit is rolled back. A concurrent duplicate that slips past the
    existence check is stopped by the ledger's primary key and reported as
    Conflict.

    Raises:
        NotFound: rater or photo does not exist
        InvalidOperation: rater owns the photo
        Conflict: rater already rated the photo
    """
    try:
        owner_id = await _check_rating_allowed(session, rater_id, photo_id)

        rating = Rating(photo_id=photo_id, rater_id=rater_id)
        session.add(rating)
        await session.flush()

        await session.execute(
            update(User).where(User.id == rater_id).values(points=User.points + 1)
        )
        await session.execute(
            update(User).where(User.id == owner_id).values(points=User.points - 1)
        )
        await session.commit()
    except IntegrityError:
        await session.rollback()
        metrics.ratings_total.labels(result="conflict").inc()
        logger.info("Concurrent duplicate rating rejected: photo=%s rater=%s", photo_id, rater_id)
        raise Conflict("You have already rated this photo")
    except Exception:
        await session.rollback()
        raise

    metrics.ratings_total.labels(result="success").inc()
    metrics.points_transferred.inc()
    logger.info("User %s rated photo %s (owner %s)", rater_id, photo_id, owner_id)
    return rating


async def _check_rating_allowed(
    session: AsyncSession,
    rater_id: uuid.UUID,
    photo_id: uuid.UUID,
) -> uuid.UUID:
    """Run the rating preconditions in order and return the photo owner's id."""
    await _get_user(session, rater_id)

    photo = await session.get(Photo, photo_id)
    if not photo:
        metrics.ratings_total.labels(result="not_found").inc()
        raise NotFound("Photo not found")

    if photo.user_id == rater_id:
        metrics.ratings_total.labels(result="self").inc()
        raise InvalidOperation("Cannot rate your own photo")

    existing = await session.execute(
        select(Rating.rater_id).where(Rating.photo_id == photo_id, Rating.rater_id == rater_id)
    )
    if existing.scalar_one_or_none():
        metrics.ratings_total.labels(result="conflict").inc()
        raise Conflict("You have already rated this photo")

    return photo.user_id


async def get_balance(session: AsyncSession, user_id: uuid.UUID, for_update: bool = False) -> int:
    """Current point balance, read fresh from the database."""
    query = select(User.points).where(User.id == user_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    points = result.scalar_one_or_none()
    if points is None:
        raise NotFound("User not found")
    return points


# ============================================================================
# Activation gate
# ============================================================================

async def set_photo_active(
    session: AsyncSession,
    owner_id: uuid.UUID,
    photo_id: uuid.UUID,
    desired: bool,
) -> Photo:
    """
    Show or hide one of the caller's photos.

    Activation requires a positive balance; deactivation is always allowed.
    No points change hands.

    Raises:
        NotFound: photo missing or owned by someone else
        InsufficientBalance: activating with a balance of zero or less
    """
    try:
        photo = await _get_owned_photo(session, owner_id, photo_id)

        if desired:
            balance = await get_balance(session, owner_id, for_update=True)
            if balance <= 0:
                metrics.activations_total.labels(result="insufficient_balance").inc()
                logger.info("Activation refused for photo %s: balance %s", photo_id, balance)
                raise InsufficientBalance("Not enough points to activate photo")

        photo.is_active = desired
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    metrics.activations_total.labels(result="activated" if desired else "deactivated").inc()
    logger.info("Photo %s active=%s", photo_id, desired)
    return photo


# ============================================================================
# Statistics
# ============================================================================

async def stats_for_photo(
    session: AsyncSession,
    owner_id: uuid.UUID,
    photo_id: uuid.UUID,
) -> PhotoStats:
    """
    Break down the ratings a photo received by rater demographics.

    Demographics are taken from each rater's most recently uploaded photo.
    Raters with no photo count towards the total only.
    """
    await _get_owned_photo(session, owner_id, photo_id)

    result = await session.execute(
        select(Rating.rater_id).where(Rating.photo_id == photo_id)
    )
    rater_ids = result.scalars().all()

    stats = PhotoStats(total=len(rater_ids))

    for rater_id in rater_ids:
        latest = await session.execute(
            select(Photo.gender, Photo.age)
            .where(Photo.user_id == rater_id)
            .order_by(Photo.created_at.desc())
            .limit(1)
        )
        row = latest.first()
        if row is None:
            continue

        gender, age = row
        if gender in stats.by_gender:
            stats.by_gender[gender] += 1
        stats.by_age[age_bucket(age)] += 1

    return stats
