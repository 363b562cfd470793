"""In-memory waitlist store for local development and tests."""

import asyncio
import copy
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID, uuid4

from ..models.base import (
    Application,
    ApplicationChoice,
    Child,
    ChoiceStatus,
    CurrentPlacement,
    Daycare,
    ParentContact,
    ParentNetworkRequest,
    Placement,
    WaitlistCandidate,
    WaitlistPolicy,
)
from ..utils.helpers import utc_now
from .base import StoreSession, WaitlistStore

logger = logging.getLogger(__name__)


@dataclass
class MemoryTables:
    """Table contents; dicts keep insertion order."""
    users: dict[UUID, ParentContact] = field(default_factory=dict)
    daycares: dict[UUID, Daycare] = field(default_factory=dict)
    admins: set[tuple[UUID, UUID]] = field(default_factory=set)
    children: dict[UUID, Child] = field(default_factory=dict)
    applications: dict[UUID, Application] = field(default_factory=dict)
    choices: dict[UUID, ApplicationChoice] = field(default_factory=dict)
    placements: dict[UUID, Placement] = field(default_factory=dict)
    network_requests: dict[UUID, ParentNetworkRequest] = field(default_factory=dict)


class MemorySession(StoreSession):
    """Operates on a private copy of the tables."""

    def __init__(self, tables: MemoryTables):
        self.tables = tables

    def _active_placements(self, on: date) -> Iterable[Placement]:
        return (p for p in self.tables.placements.values() if p.is_active(on))

    async def get_daycare(self, daycare_id: UUID, for_update: bool = False) -> Daycare | None:
        return self.tables.daycares.get(daycare_id)

    async def update_daycare_policy(self, daycare_id: UUID, policy: WaitlistPolicy) -> Daycare:
        daycare = self.tables.daycares[daycare_id]
        daycare.waitlist_policy = policy.value
        return daycare

    async def is_daycare_admin(self, user_id: UUID, daycare_id: UUID) -> bool:
        return (user_id, daycare_id) in self.tables.admins

    async def adjust_enrollment(self, daycare_id: UUID, delta: int) -> Daycare:
        daycare = self.tables.daycares[daycare_id]
        daycare.current_enrollment = max(daycare.current_enrollment + delta, 0)
        return daycare

    async def list_waitlist_candidates(self, daycare_id: UUID, on: date) -> list[WaitlistCandidate]:
        candidates = []
        for choice in self.tables.choices.values():
            if choice.daycare_id != daycare_id or choice.status not in ChoiceStatus.on_waitlist():
                continue
            application = self.tables.applications[choice.application_id]
            child = self.tables.children[application.child_id]
            parent = self.tables.users[application.parent_id]

            current = None
            held = [p for p in self._active_placements(on) if p.child_id == child.id]
            if held:
                placement = max(held, key=lambda p: p.start_date)
                current = CurrentPlacement(
                    placement_id=placement.id,
                    daycare_id=placement.daycare_id,
                    daycare_name=self.tables.daycares[placement.daycare_id].name
                )

            candidates.append(WaitlistCandidate(
                choice_id=choice.id,
                daycare_id=choice.daycare_id,
                preference_rank=choice.preference_rank,
                status=choice.status,
                application_id=application.id,
                application_date=application.application_date,
                desired_start_date=application.desired_start_date,
                child=child.model_copy(deep=True),
                parent=parent.model_copy(),
                current_placement=current
            ))
        return candidates

    async def get_choice(self, choice_id: UUID, for_update: bool = False) -> ApplicationChoice | None:
        return self.tables.choices.get(choice_id)

    async def update_choice_status(
        self,
        choice_id: UUID,
        status: ChoiceStatus,
        notes: str | None,
        updated_at: datetime
    ) -> ApplicationChoice:
        choice = self.tables.choices[choice_id]
        choice.status = status
        choice.status_notes = notes
        choice.status_updated_at = updated_at
        return choice

    async def get_application(self, application_id: UUID) -> Application | None:
        return self.tables.applications.get(application_id)

    async def get_child(self, child_id: UUID) -> Child | None:
        return self.tables.children.get(child_id)

    async def lock_child(self, child_id: UUID) -> None:
        # transactions are already serialised by the store lock
        return None

    async def child_has_active_application(self, child_id: UUID) -> bool:
        application_ids = {a.id for a in self.tables.applications.values() if a.child_id == child_id}
        return any(
            c.application_id in application_ids and c.status in ChoiceStatus.on_waitlist()
            for c in self.tables.choices.values()
        )

    async def insert_application(
        self,
        child_id: UUID,
        parent_id: UUID,
        desired_start_date: date,
        notes: str | None,
        opt_in_parent_network: bool
    ) -> Application:
        application = Application(
            id=uuid4(),
            child_id=child_id,
            parent_id=parent_id,
            application_date=utc_now(),
            desired_start_date=desired_start_date,
            notes=notes,
            opt_in_parent_network=opt_in_parent_network
        )
        self.tables.applications[application.id] = application
        return application

    async def insert_choice(
        self,
        application_id: UUID,
        daycare_id: UUID,
        preference_rank: int
    ) -> ApplicationChoice:
        choice = ApplicationChoice(
            id=uuid4(),
            application_id=application_id,
            daycare_id=daycare_id,
            preference_rank=preference_rank
        )
        self.tables.choices[choice.id] = choice
        return choice

    async def insert_parent_network_request(
        self,
        parent_id: UUID,
        application_id: UUID,
        desired_area: str | None
    ) -> UUID:
        request = ParentNetworkRequest(
            id=uuid4(),
            parent_id=parent_id,
            application_id=application_id,
            desired_area=desired_area
        )
        self.tables.network_requests[request.id] = request
        return request.id

    async def withdraw_choices(self, application_id: UUID, updated_at: datetime) -> int:
        count = 0
        for choice in self.tables.choices.values():
            if choice.application_id == application_id and choice.status in ChoiceStatus.on_waitlist():
                choice.status = ChoiceStatus.WITHDRAWN
                choice.status_updated_at = updated_at
                count += 1
        return count

    async def get_placement(self, placement_id: UUID, for_update: bool = False) -> Placement | None:
        return self.tables.placements.get(placement_id)

    async def find_active_placement_for_choice(self, choice_id: UUID, on: date) -> Placement | None:
        return next(
            (p for p in self._active_placements(on) if p.application_choice_id == choice_id),
            None
        )

    async def find_active_placement_for_child(self, child_id: UUID, on: date) -> Placement | None:
        return next((p for p in self._active_placements(on) if p.child_id == child_id), None)

    async def insert_placement(
        self,
        child_id: UUID,
        daycare_id: UUID,
        application_choice_id: UUID,
        start_date: date
    ) -> Placement:
        placement = Placement(
            id=uuid4(),
            child_id=child_id,
            daycare_id=daycare_id,
            application_choice_id=application_choice_id,
            start_date=start_date
        )
        self.tables.placements[placement.id] = placement
        return placement

    async def set_placement_end_date(self, placement_id: UUID, end_date: date) -> Placement:
        placement = self.tables.placements[placement_id]
        placement.end_date = end_date
        return placement


class MemoryStore(WaitlistStore):
    """
    Process-local store with the same transactional contract as PostgresStore.

    Transactions are serialised by a lock and work on a deep copy of the
    tables, which replaces the live tables only when the block exits cleanly.
    """

    def __init__(self, max_attempts: int = 3):
        super().__init__(max_attempts)
        self.tables = MemoryTables()
        self._lock = asyncio.Lock()

    async def connect(self) -> bool:
        self.connected = True
        logger.info("Using in-memory waitlist store")
        return True

    async def close(self):
        self.connected = False

    async def health_check(self) -> bool:
        return self.connected

    @asynccontextmanager
    async def _transaction(self, readonly: bool) -> AsyncIterator[StoreSession]:
        async with self._lock:
            working = copy.deepcopy(self.tables)
            yield MemorySession(working)
            if not readonly:
                self.tables = working

    # Seeding helpers

    def add_user(self, user: ParentContact) -> ParentContact:
        self.tables.users[user.id] = user
        return user

    def add_daycare(self, daycare: Daycare, admin_ids: Iterable[UUID] = ()) -> Daycare:
        self.tables.daycares[daycare.id] = daycare
        for user_id in admin_ids:
            self.tables.admins.add((user_id, daycare.id))
        return daycare

    def add_admin(self, user_id: UUID, daycare_id: UUID):
        self.tables.admins.add((user_id, daycare_id))

    def add_child(self, child: Child) -> Child:
        self.tables.children[child.id] = child
        return child

    def add_application(
        self,
        application: Application,
        choices: Iterable[ApplicationChoice] = ()
    ) -> Application:
        self.tables.applications[application.id] = application
        for choice in choices:
            self.tables.choices[choice.id] = choice
        return application

    def add_placement(self, placement: Placement) -> Placement:
        self.tables.placements[placement.id] = placement
        return placement
