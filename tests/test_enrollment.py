"""Tests for ending placements."""

from datetime import date, timedelta
from uuid import uuid4

import pytest

from src.waitlist.services import EnrollmentManager
from src.waitlist.utils.exceptions import ForbiddenError, NotFoundError
from src.waitlist.utils.helpers import utc_today


@pytest.fixture
def manager(store):
    return EnrollmentManager(store)


@pytest.fixture
def placement(world):
    child = world.add_family("Ada")
    return world.place(child, world.north)


class TestEndPlacement:

    async def test_end_placement_returns_seat(self, world, manager, placement):
        result = await manager.end_placement(placement.id, world.north_admin)

        assert result.already_ended is False
        assert result.placement.end_date == utc_today()
        assert result.current_enrollment == 2
        assert world.store.tables.placements[placement.id].end_date == utc_today()
        assert world.daycare(world.north.id).current_enrollment == 2

    async def test_enrollment_never_negative(self, world, manager, placement):
        world.daycare(world.north.id).current_enrollment = 0

        result = await manager.end_placement(placement.id, world.north_admin)

        assert result.current_enrollment == 0
        assert world.daycare(world.north.id).current_enrollment == 0

    async def test_ending_twice_decrements_once(self, world, manager, placement):
        await manager.end_placement(placement.id, world.north_admin)
        again = await manager.end_placement(placement.id, world.north_admin)

        assert again.already_ended is True
        assert again.current_enrollment == 2
        assert world.daycare(world.north.id).current_enrollment == 2

    async def test_future_end_date_still_active(self, world, manager):
        child = world.add_family("Bo")
        upcoming = world.place(child, world.north, end_date=utc_today() + timedelta(days=14))

        result = await manager.end_placement(upcoming.id, world.north_admin)

        assert result.already_ended is False
        assert result.placement.end_date == utc_today()

    async def test_future_start_is_cancelled(self, world, manager):
        child = world.add_family("Cy")
        start = utc_today() + timedelta(days=30)
        upcoming = world.place(child, world.north, start_date=start)

        result = await manager.end_placement(upcoming.id, world.north_admin)

        assert result.already_ended is False
        assert result.placement.start_date == start
        assert result.placement.end_date == utc_today()
        assert not world.store.tables.placements[upcoming.id].is_active(start)
        assert world.daycare(world.north.id).current_enrollment == 2

        again = await manager.end_placement(upcoming.id, world.north_admin)

        assert again.already_ended is True
        assert world.daycare(world.north.id).current_enrollment == 2

    async def test_placement_ended_in_the_past_is_untouched(self, world, manager):
        child = world.add_family("Dee")
        ended = world.place(child, world.north, end_date=date(2024, 6, 30))

        result = await manager.end_placement(ended.id, world.north_admin)

        assert result.already_ended is True
        assert result.placement.end_date == date(2024, 6, 30)
        assert world.daycare(world.north.id).current_enrollment == 3

    async def test_system_admin_may_end(self, world, manager, placement):
        result = await manager.end_placement(placement.id, world.system_admin)

        assert result.current_enrollment == 2


class TestEndPlacementAccess:

    async def test_admin_of_other_daycare_forbidden(self, world, manager, placement):
        with pytest.raises(ForbiddenError):
            await manager.end_placement(placement.id, world.south_admin)

        assert world.store.tables.placements[placement.id].end_date is None
        assert world.daycare(world.north.id).current_enrollment == 3

    async def test_funder_forbidden(self, world, manager, placement):
        with pytest.raises(ForbiddenError):
            await manager.end_placement(placement.id, world.funder)

    async def test_missing_placement(self, world, manager):
        with pytest.raises(NotFoundError) as exc_info:
            await manager.end_placement(uuid4(), world.system_admin)
        assert exc_info.value.resource_type == "Placement"

        with pytest.raises(ForbiddenError):
            await manager.end_placement(uuid4(), world.north_admin)
