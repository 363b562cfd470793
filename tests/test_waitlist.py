"""Tests for building a daycare's ranked waitlist."""

from datetime import date, timedelta
from uuid import uuid4

import pytest

from src.waitlist.models.base import ActingUser, ChoiceStatus, UserRole, WaitlistPolicy
from src.waitlist.ranking import WaitlistRanker
from src.waitlist.services import EnrollmentManager, WaitlistBuilder
from src.waitlist.utils.exceptions import ForbiddenError, NotFoundError
from src.waitlist.utils.helpers import utc_today

PENDING = ChoiceStatus.PENDING
WAITLISTED = ChoiceStatus.WAITLISTED


def first_names(result) -> list[str]:
    return [entry.child_first_name for entry in result.entries]


class TestWaitlistBuilder:
    """Candidate selection, policy choice and positions."""

    @pytest.fixture
    def builder(self, store):
        return WaitlistBuilder(store, ranker=WaitlistRanker(seed=42))

    @pytest.fixture
    def families(self, world):
        ada = world.add_family("Ada")
        bo = world.add_family("Bo", languages=["Inuktitut"])
        cy = world.add_family("Cy", is_inuk=True)
        world.apply(ada, [(world.north, PENDING)], date(2024, 1, 5))
        world.apply(bo, [(world.north, WAITLISTED)], date(2024, 1, 1))
        world.apply(cy, [(world.north, PENDING)], date(2024, 2, 1))
        return ada, bo, cy

    async def test_pending_then_waitlisted_by_application_date(self, world, builder, families):
        result = await builder.build(world.north.id, world.north_admin)

        assert result.policy == WaitlistPolicy.APPLICATION_DATE
        assert first_names(result) == ["Ada", "Cy", "Bo"]
        assert [entry.position for entry in result.entries] == [1, 2, 3]
        assert result.total == 3

    async def test_entry_carries_child_and_parent_details(self, world, builder, families):
        result = await builder.build(world.north.id, world.north_admin)
        entry = result.entries[0]

        assert entry.child_last_name == "Doe"
        assert entry.parent_email == "ada.parent@example.org"
        assert entry.parent_phone == "867-555-0100"
        assert entry.desired_start_date == date(2024, 9, 1)
        assert entry.preference_rank == 1
        assert entry.has_current_placement is False
        assert entry.current_placement is None

    async def test_only_pending_and_waitlisted_choices(self, world, builder, families):
        for status in (ChoiceStatus.ACCEPTED, ChoiceStatus.REJECTED, ChoiceStatus.WITHDRAWN):
            child = world.add_family(status.value.capitalize())
            world.apply(child, [(world.north, status)], date(2023, 1, 1))

        result = await builder.build(world.north.id, world.north_admin)

        assert first_names(result) == ["Ada", "Cy", "Bo"]

    async def test_other_daycares_choices_excluded(self, world, builder, families):
        dee = world.add_family("Dee")
        world.apply(dee, [(world.south, PENDING), (world.north, WAITLISTED)], date(2024, 3, 1))

        north = await builder.build(world.north.id, world.north_admin)
        south = await builder.build(world.south.id, world.south_admin)

        assert first_names(north) == ["Ada", "Cy", "Bo", "Dee"]
        assert first_names(south) == ["Dee"]
        assert north.entries[-1].preference_rank == 2

    async def test_stored_policy_used(self, world, builder, families):
        world.daycare(world.north.id).waitlist_policy = WaitlistPolicy.INUK.value

        result = await builder.build(world.north.id, world.north_admin)

        assert result.policy == WaitlistPolicy.INUK
        assert first_names(result) == ["Cy", "Ada", "Bo"]

    async def test_requested_policy_overrides_stored(self, world, builder, families):
        world.daycare(world.north.id).waitlist_policy = WaitlistPolicy.INUK.value

        result = await builder.build(world.north.id, world.north_admin, requested_policy="language")

        assert result.policy == WaitlistPolicy.LANGUAGE
        # Bo speaks Inuktitut but is waitlisted, so stays behind pending entries
        assert first_names(result) == ["Ada", "Cy", "Bo"]
        assert world.daycare(world.north.id).waitlist_policy == WaitlistPolicy.INUK.value

    async def test_unknown_stored_policy_uses_application_date(self, world, builder, families):
        world.daycare(world.north.id).waitlist_policy = "points"

        result = await builder.build(world.north.id, world.north_admin)

        assert result.policy == WaitlistPolicy.APPLICATION_DATE

    async def test_missing_stored_policy_uses_configured_default(self, world, store, families):
        world.daycare(world.north.id).waitlist_policy = None
        builder = WaitlistBuilder(store, ranker=WaitlistRanker(seed=1), default_policy="inuk")

        result = await builder.build(world.north.id, world.north_admin)

        assert result.policy == WaitlistPolicy.INUK

    async def test_random_policy_is_permutation(self, world, families):
        builder = WaitlistBuilder(world.store)

        result = await builder.build(world.north.id, world.north_admin, requested_policy="random")

        assert result.policy == WaitlistPolicy.RANDOM
        assert sorted(first_names(result)[:2]) == ["Ada", "Cy"]
        assert first_names(result)[2] == "Bo"

    async def test_empty_waitlist(self, world, builder):
        result = await builder.build(world.south.id, world.south_admin)

        assert result.entries == []
        assert result.total == 0

    async def test_building_changes_nothing(self, world, builder, families):
        before = world.store.tables

        await builder.build(world.north.id, world.north_admin)

        assert world.store.tables is before


class TestEnrolledElsewhere:
    """Current placements are found across all daycares."""

    @pytest.fixture
    def builder(self, store):
        return WaitlistBuilder(store, ranker=WaitlistRanker(seed=42))

    async def test_placed_children_ranked_last_within_group(self, world, builder):
        placed = world.add_family("Placed")
        free = world.add_family("Free")
        world.apply(placed, [(world.north, PENDING)], date(2024, 1, 1))
        world.apply(free, [(world.north, PENDING)], date(2024, 6, 1))
        world.place(placed, world.south)

        result = await builder.build(world.north.id, world.north_admin, "enrolled_elsewhere")

        assert first_names(result) == ["Free", "Placed"]
        entry = result.entries[1]
        assert entry.has_current_placement is True
        assert entry.current_placement.daycare_id == world.south.id
        assert entry.current_placement.daycare_name == "Tundra Tots"

    async def test_placement_at_same_daycare_counts(self, world, builder):
        here = world.add_family("Here")
        free = world.add_family("Free")
        world.apply(here, [(world.north, WAITLISTED)], date(2023, 1, 1))
        world.apply(free, [(world.north, WAITLISTED)], date(2024, 1, 1))
        world.place(here, world.north)

        result = await builder.build(world.north.id, world.north_admin, "enrolled_elsewhere")

        assert first_names(result) == ["Free", "Here"]

    async def test_ended_placement_does_not_count(self, world, builder):
        today = utc_today()
        ended = world.add_family("Ended")
        ends_today = world.add_family("EndsToday")
        later = world.add_family("EndsLater")
        world.apply(ended, [(world.north, PENDING)], date(2024, 1, 1))
        world.apply(ends_today, [(world.north, PENDING)], date(2024, 1, 2))
        world.apply(later, [(world.north, PENDING)], date(2024, 1, 3))
        world.place(ended, world.south, end_date=today - timedelta(days=3))
        world.place(ends_today, world.south, end_date=today)
        world.place(later, world.south, end_date=today + timedelta(days=30))

        result = await builder.build(world.north.id, world.north_admin, "enrolled_elsewhere")

        assert first_names(result) == ["Ended", "EndsToday", "EndsLater"]
        assert [e.has_current_placement for e in result.entries] == [False, False, True]

    async def test_placement_ended_through_service_no_longer_counts(self, world, builder, store):
        moved = world.add_family("Moved")
        world.apply(moved, [(world.north, PENDING)], date(2024, 1, 1))
        placement = world.place(moved, world.south)

        await EnrollmentManager(store).end_placement(placement.id, world.south_admin)
        result = await builder.build(world.north.id, world.north_admin, "enrolled_elsewhere")

        assert result.entries[0].has_current_placement is False

    async def test_activity_measured_on_service_clock(self, world, builder, monkeypatch):
        monkeypatch.setattr("src.waitlist.services.waitlist.utc_today", lambda: date(2030, 1, 1))
        ending = world.add_family("Ending")
        staying = world.add_family("Staying")
        world.apply(ending, [(world.north, PENDING)], date(2024, 1, 1))
        world.apply(staying, [(world.north, PENDING)], date(2024, 1, 2))
        world.place(ending, world.south, end_date=date(2030, 1, 1))
        world.place(staying, world.south, end_date=date(2030, 1, 2))

        result = await builder.build(world.north.id, world.north_admin)

        assert [e.has_current_placement for e in result.entries] == [False, True]


class TestWaitlistVisibility:
    """Who may read a daycare's waitlist, and what a refusal reveals."""

    @pytest.fixture
    def builder(self, store):
        return WaitlistBuilder(store, ranker=WaitlistRanker(seed=42))

    async def test_system_admin_reads_any_daycare(self, world, builder):
        result = await builder.build(world.south.id, world.system_admin)

        assert result.daycare_id == world.south.id

    async def test_admin_of_other_daycare_forbidden(self, world, builder):
        with pytest.raises(ForbiddenError):
            await builder.build(world.north.id, world.south_admin)

    async def test_missing_daycare_not_found_for_system_admin(self, world, builder):
        with pytest.raises(NotFoundError) as exc_info:
            await builder.build(uuid4(), world.system_admin)

        assert exc_info.value.resource_type == "Daycare"

    async def test_missing_daycare_forbidden_for_daycare_admin(self, world, builder):
        with pytest.raises(ForbiddenError):
            await builder.build(uuid4(), world.north_admin)

    @pytest.mark.parametrize("role", [UserRole.PARENT, UserRole.FUNDER])
    async def test_non_admin_roles_forbidden(self, world, builder, role):
        user = ActingUser(user_id=uuid4(), role=role)

        with pytest.raises(ForbiddenError):
            await builder.build(world.north.id, user)
