import uuid

import pytest

from photorate.errors import InsufficientBalance, NotFound
from photorate.models import Photo
from photorate.services.ratings import set_photo_active


async def is_active(session_factory, photo) -> bool:
    async with session_factory() as session:
        return (await session.get(Photo, photo.id)).is_active


async def test_activation_with_positive_balance(db_call, session_factory, make_user, make_photo, balance_of):
    owner = await make_user(points=1)
    photo = await make_photo(owner, is_active=False)

    updated = await db_call(set_photo_active, owner.id, photo.id, True)

    assert updated.is_active is True
    assert await is_active(session_factory, photo) is True
    assert await balance_of(owner) == 1


@pytest.mark.parametrize("points", [0, -3])
async def test_activation_blocked_without_points(db_call, session_factory, make_user, make_photo, points):
    owner = await make_user(points=points)
    photo = await make_photo(owner, is_active=False)

    with pytest.raises(InsufficientBalance):
        await db_call(set_photo_active, owner.id, photo.id, True)

    assert await is_active(session_factory, photo) is False


async def test_deactivation_ignores_balance(db_call, session_factory, make_user, make_photo):
    owner = await make_user(points=0)
    photo = await make_photo(owner, is_active=True)

    await db_call(set_photo_active, owner.id, photo.id, False)

    assert await is_active(session_factory, photo) is False


async def test_only_owner_can_toggle(db_call, session_factory, make_user, make_photo):
    owner = await make_user()
    stranger = await make_user()
    photo = await make_photo(owner, is_active=False)

    with pytest.raises(NotFound):
        await db_call(set_photo_active, stranger.id, photo.id, True)

    assert await is_active(session_factory, photo) is False


async def test_ownership_is_checked_before_balance(db_call, make_user):
    broke = await make_user(points=0)
    with pytest.raises(NotFound):
        await db_call(set_photo_active, broke.id, uuid.uuid4(), True)
