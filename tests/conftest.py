"""Shared fixtures: an in-memory store seeded with two daycares and their admins."""

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Iterable, Optional, Tuple
from uuid import uuid4

import pytest

from src.waitlist.database.memory import MemoryStore
from src.waitlist.models.base import (
    ActingUser,
    Application,
    ApplicationChoice,
    Child,
    ChoiceStatus,
    Daycare,
    ParentContact,
    Placement,
    UserRole,
)


@dataclass
class WaitlistWorld:
    """Handles on the seeded store plus helpers to add families and applications."""
    store: MemoryStore
    north: Daycare
    south: Daycare
    north_admin: ActingUser
    south_admin: ActingUser
    system_admin: ActingUser
    funder: ActingUser

    def daycare(self, daycare_id) -> Daycare:
        """Committed state of a daycare."""
        return self.store.tables.daycares[daycare_id]

    def choice(self, choice_id) -> ApplicationChoice:
        return self.store.tables.choices[choice_id]

    def placements_for_choice(self, choice_id) -> list[Placement]:
        return [
            p for p in self.store.tables.placements.values()
            if p.application_choice_id == choice_id
        ]

    def add_family(
        self,
        first_name: str,
        languages: Iterable[str] = (),
        is_inuk: bool = False
    ) -> Child:
        parent = self.store.add_user(ParentContact(
            id=uuid4(),
            email=f"{first_name.lower()}.parent@example.org",
            first_name="Parent",
            last_name=first_name,
            phone="867-555-0100"
        ))
        return self.store.add_child(Child(
            id=uuid4(),
            parent_id=parent.id,
            first_name=first_name,
            last_name="Doe",
            date_of_birth=date(2022, 3, 14),
            is_inuk=is_inuk,
            languages_spoken_at_home=list(languages)
        ))

    def parent_of(self, child: Child) -> ActingUser:
        return ActingUser(user_id=child.parent_id, role=UserRole.PARENT)

    def apply(
        self,
        child: Child,
        choices: Iterable[Tuple[Daycare, ChoiceStatus]],
        applied_on: date,
        desired_start_date: date = date(2024, 9, 1)
    ) -> list[ApplicationChoice]:
        """Add an application with choices ranked in the order given."""
        application = Application(
            id=uuid4(),
            child_id=child.id,
            parent_id=child.parent_id,
            application_date=datetime.combine(applied_on, time(12, 0), tzinfo=timezone.utc),
            desired_start_date=desired_start_date
        )
        rows = [
            ApplicationChoice(
                id=uuid4(),
                application_id=application.id,
                daycare_id=daycare.id,
                preference_rank=rank,
                status=status
            )
            for rank, (daycare, status) in enumerate(choices, start=1)
        ]
        self.store.add_application(application, rows)
        return rows

    def place(
        self,
        child: Child,
        daycare: Daycare,
        start_date: date = date(2024, 1, 1),
        end_date: Optional[date] = None,
        choice: Optional[ApplicationChoice] = None
    ) -> Placement:
        return self.store.add_placement(Placement(
            id=uuid4(),
            child_id=child.id,
            daycare_id=daycare.id,
            application_choice_id=choice.id if choice else None,
            start_date=start_date,
            end_date=end_date
        ))


@pytest.fixture
def store():
    store = MemoryStore()
    store.connected = True
    return store


@pytest.fixture
def world(store):
    north_admin = ActingUser(user_id=uuid4(), role=UserRole.DAYCARE_ADMIN)
    south_admin = ActingUser(user_id=uuid4(), role=UserRole.DAYCARE_ADMIN)

    north = store.add_daycare(
        Daycare(id=uuid4(), name="Northern Lights Daycare", capacity=10, current_enrollment=3),
        admin_ids=[north_admin.user_id]
    )
    south = store.add_daycare(
        Daycare(id=uuid4(), name="Tundra Tots", capacity=5, current_enrollment=1),
        admin_ids=[south_admin.user_id]
    )

    return WaitlistWorld(
        store=store,
        north=north,
        south=south,
        north_admin=north_admin,
        south_admin=south_admin,
        system_admin=ActingUser(user_id=uuid4(), role=UserRole.SYSTEM_ADMIN),
        funder=ActingUser(user_id=uuid4(), role=UserRole.FUNDER)
    )
