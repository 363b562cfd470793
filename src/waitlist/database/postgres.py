"""PostgreSQL implementation of the waitlist store."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime
from uuid import UUID

import asyncpg

from ..models.base import (
    Application,
    ApplicationChoice,
    Child,
    ChoiceStatus,
    CurrentPlacement,
    Daycare,
    ParentContact,
    Placement,
    WaitlistCandidate,
    WaitlistPolicy,
)
from .base import StoreSession, WaitlistStore
from .connection import DatabaseManager

logger = logging.getLogger(__name__)

DAYCARE_COLUMNS = "id, name, capacity, current_enrollment, waitlist_policy, is_active"
CHOICE_COLUMNS = "id, application_id, daycare_id, preference_rank, status, status_notes, status_updated_at"
PLACEMENT_COLUMNS = "id, child_id, daycare_id, application_choice_id, start_date, end_date"
APPLICATION_COLUMNS = (
    "id, child_id, parent_id, application_date, desired_start_date, notes, opt_in_parent_network"
)

ACTIVE_PLACEMENT = "(p.end_date IS NULL OR p.end_date > $2)"

WAITLIST_QUERY = f"""
    SELECT
        ac.id AS choice_id,
        ac.daycare_id,
        ac.preference_rank,
        ac.status,
        a.id AS application_id,
        a.application_date,
        a.desired_start_date,
        c.id AS child_id,
        c.parent_id,
        c.first_name,
        c.last_name,
        c.date_of_birth,
        c.is_inuk,
        c.languages_spoken_at_home,
        c.has_special_needs,
        u.email AS parent_email,
        u.phone AS parent_phone,
        u.first_name AS parent_first_name,
        u.last_name AS parent_last_name,
        cp.placement_id AS current_placement_id,
        cp.daycare_id AS current_daycare_id,
        cp.daycare_name AS current_daycare_name
    FROM application_choices ac
    JOIN applications a ON ac.application_id = a.id
    JOIN children c ON a.child_id = c.id
    JOIN users u ON a.parent_id = u.id
    LEFT JOIN LATERAL (
        SELECT p.id AS placement_id, d.id AS daycare_id, d.name AS daycare_name
        FROM placements p
        JOIN daycares d ON p.daycare_id = d.id
        WHERE p.child_id = c.id
        AND {ACTIVE_PLACEMENT}
        ORDER BY p.start_date DESC
        LIMIT 1
    ) cp ON true
    WHERE ac.daycare_id = $1
    AND ac.status = ANY($3::text[])
    ORDER BY ac.created_at, ac.id
"""


def _candidate_from_row(row: asyncpg.Record) -> WaitlistCandidate:
    current = None
    if row['current_placement_id'] is not None:
        current = CurrentPlacement(
            placement_id=row['current_placement_id'],
            daycare_id=row['current_daycare_id'],
            daycare_name=row['current_daycare_name']
        )

    return WaitlistCandidate(
        choice_id=row['choice_id'],
        daycare_id=row['daycare_id'],
        preference_rank=row['preference_rank'],
        status=row['status'],
        application_id=row['application_id'],
        application_date=row['application_date'],
        desired_start_date=row['desired_start_date'],
        child=Child(
            id=row['child_id'],
            parent_id=row['parent_id'],
            first_name=row['first_name'],
            last_name=row['last_name'],
            date_of_birth=row['date_of_birth'],
            is_inuk=row['is_inuk'],
            languages_spoken_at_home=list(row['languages_spoken_at_home'] or []),
            has_special_needs=row['has_special_needs']
        ),
        parent=ParentContact(
            id=row['parent_id'],
            email=row['parent_email'],
            first_name=row['parent_first_name'],
            last_name=row['parent_last_name'],
            phone=row['parent_phone']
        ),
        current_placement=current
    )


class PostgresSession(StoreSession):
    """Store operations bound to one connection with an open transaction."""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    async def get_daycare(self, daycare_id: UUID, for_update: bool = False) -> Daycare | None:
        lock = " FOR UPDATE" if for_update else ""
        row = await self.conn.fetchrow(
            f"SELECT {DAYCARE_COLUMNS} FROM daycares WHERE id = $1{lock}",
            daycare_id
        )
        return Daycare(**dict(row)) if row else None

    async def update_daycare_policy(self, daycare_id: UUID, policy: WaitlistPolicy) -> Daycare:
        row = await self.conn.fetchrow(
            f"""UPDATE daycares SET waitlist_policy = $1
                WHERE id = $2
                RETURNING {DAYCARE_COLUMNS}""",
            policy.value, daycare_id
        )
        return Daycare(**dict(row))

    async def is_daycare_admin(self, user_id: UUID, daycare_id: UUID) -> bool:
        return await self.conn.fetchval(
            """SELECT EXISTS (
                   SELECT 1 FROM daycare_administrators
                   WHERE user_id = $1 AND daycare_id = $2
               )""",
            user_id, daycare_id
        )

    async def adjust_enrollment(self, daycare_id: UUID, delta: int) -> Daycare:
        row = await self.conn.fetchrow(
            f"""UPDATE daycares
                SET current_enrollment = GREATEST(current_enrollment + $1, 0)
                WHERE id = $2
                RETURNING {DAYCARE_COLUMNS}""",
            delta, daycare_id
        )
        return Daycare(**dict(row))

    async def list_waitlist_candidates(self, daycare_id: UUID, on: date) -> list[WaitlistCandidate]:
        statuses = [status.value for status in ChoiceStatus.on_waitlist()]
        rows = await self.conn.fetch(WAITLIST_QUERY, daycare_id, on, statuses)
        return [_candidate_from_row(row) for row in rows]

    async def get_choice(self, choice_id: UUID, for_update: bool = False) -> ApplicationChoice | None:
        lock = " FOR UPDATE" if for_update else ""
        row = await self.conn.fetchrow(
            f"SELECT {CHOICE_COLUMNS} FROM application_choices WHERE id = $1{lock}",
            choice_id
        )
        return ApplicationChoice(**dict(row)) if row else None

    async def update_choice_status(
        self,
        choice_id: UUID,
        status: ChoiceStatus,
        notes: str | None,
        updated_at: datetime
    ) -> ApplicationChoice:
        row = await self.conn.fetchrow(
            f"""UPDATE application_choices
                SET status = $1, status_notes = $2, status_updated_at = $3
                WHERE id = $4
                RETURNING {CHOICE_COLUMNS}""",
            status.value, notes, updated_at, choice_id
        )
        return ApplicationChoice(**dict(row))

    async def get_application(self, application_id: UUID) -> Application | None:
        row = await self.conn.fetchrow(
            f"SELECT {APPLICATION_COLUMNS} FROM applications WHERE id = $1",
            application_id
        )
        return Application(**dict(row)) if row else None

    async def get_child(self, child_id: UUID) -> Child | None:
        row = await self.conn.fetchrow(
            """SELECT id, parent_id, first_name, last_name, date_of_birth,
                      is_inuk, languages_spoken_at_home, has_special_needs
               FROM children WHERE id = $1""",
            child_id
        )
        if not row:
            return None
        data = dict(row)
        data['languages_spoken_at_home'] = list(data['languages_spoken_at_home'] or [])
        return Child(**data)

    async def lock_child(self, child_id: UUID) -> None:
        # written, not just locked: a concurrent repeatable read accept must fail to serialise
        await self.conn.execute(
            "UPDATE children SET updated_at = clock_timestamp() WHERE id = $1",
            child_id
        )

    async def child_has_active_application(self, child_id: UUID) -> bool:
        return await self.conn.fetchval(
            """SELECT EXISTS (
                   SELECT 1 FROM applications a
                   JOIN application_choices ac ON ac.application_id = a.id
                   WHERE a.child_id = $1
                   AND ac.status = ANY($2::text[])
               )""",
            child_id, [status.value for status in ChoiceStatus.on_waitlist()]
        )

    async def insert_application(
        self,
        child_id: UUID,
        parent_id: UUID,
        desired_start_date: date,
        notes: str | None,
        opt_in_parent_network: bool
    ) -> Application:
        row = await self.conn.fetchrow(
            f"""INSERT INTO applications
                (child_id, parent_id, desired_start_date, notes, opt_in_parent_network)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING {APPLICATION_COLUMNS}""",
            child_id, parent_id, desired_start_date, notes, opt_in_parent_network
        )
        return Application(**dict(row))

    async def insert_choice(
        self,
        application_id: UUID,
        daycare_id: UUID,
        preference_rank: int
    ) -> ApplicationChoice:
        row = await self.conn.fetchrow(
            f"""INSERT INTO application_choices (application_id, daycare_id, preference_rank)
                VALUES ($1, $2, $3)
                RETURNING {CHOICE_COLUMNS}""",
            application_id, daycare_id, preference_rank
        )
        return ApplicationChoice(**dict(row))

    async def insert_parent_network_request(
        self,
        parent_id: UUID,
        application_id: UUID,
        desired_area: str | None
    ) -> UUID:
        return await self.conn.fetchval(
            """INSERT INTO parent_network_requests (parent_id, application_id, desired_area)
               VALUES ($1, $2, $3)
               RETURNING id""",
            parent_id, application_id, desired_area
        )

    async def withdraw_choices(self, application_id: UUID, updated_at: datetime) -> int:
        rows = await self.conn.fetch(
            """UPDATE application_choices
               SET status = 'withdrawn', status_updated_at = $2
               WHERE application_id = $1
               AND status IN ('pending', 'waitlisted')
               RETURNING id""",
            application_id, updated_at
        )
        return len(rows)

    async def get_placement(self, placement_id: UUID, for_update: bool = False) -> Placement | None:
        lock = " FOR UPDATE" if for_update else ""
        row = await self.conn.fetchrow(
            f"SELECT {PLACEMENT_COLUMNS} FROM placements WHERE id = $1{lock}",
            placement_id
        )
        return Placement(**dict(row)) if row else None

    async def find_active_placement_for_choice(self, choice_id: UUID, on: date) -> Placement | None:
        row = await self.conn.fetchrow(
            f"""SELECT {PLACEMENT_COLUMNS} FROM placements p
                WHERE p.application_choice_id = $1 AND {ACTIVE_PLACEMENT}
                ORDER BY p.start_date DESC
                LIMIT 1""",
            choice_id, on
        )
        return Placement(**dict(row)) if row else None

    async def find_active_placement_for_child(self, child_id: UUID, on: date) -> Placement | None:
        row = await self.conn.fetchrow(
            f"""SELECT {PLACEMENT_COLUMNS} FROM placements p
                WHERE p.child_id = $1 AND {ACTIVE_PLACEMENT}
                ORDER BY p.start_date DESC
                LIMIT 1""",
            child_id, on
        )
        return Placement(**dict(row)) if row else None

    async def insert_placement(
        self,
        child_id: UUID,
        daycare_id: UUID,
        application_choice_id: UUID,
        start_date: date
    ) -> Placement:
        row = await self.conn.fetchrow(
            f"""INSERT INTO placements (child_id, daycare_id, application_choice_id, start_date)
                VALUES ($1, $2, $3, $4)
                RETURNING {PLACEMENT_COLUMNS}""",
            child_id, daycare_id, application_choice_id, start_date
        )
        return Placement(**dict(row))

    async def set_placement_end_date(self, placement_id: UUID, end_date: date) -> Placement:
        row = await self.conn.fetchrow(
            f"""UPDATE placements SET end_date = $1
                WHERE id = $2
                RETURNING {PLACEMENT_COLUMNS}""",
            end_date, placement_id
        )
        return Placement(**dict(row))


class PostgresStore(WaitlistStore):
    """Waitlist store backed by an asyncpg pool."""

    retryable_errors = (
        asyncpg.exceptions.SerializationError,
        asyncpg.exceptions.DeadlockDetectedError,
    )

    def __init__(
        self,
        database_url: str | None,
        isolation: str = "repeatable_read",
        apply_schema: bool = False,
        db_manager: DatabaseManager | None = None,
        max_attempts: int = 3
    ):
        super().__init__(max_attempts)
        self.database_url = database_url
        self.isolation = isolation
        self.apply_schema = apply_schema
        self.db_manager = db_manager or DatabaseManager()

    async def connect(self) -> bool:
        await self.db_manager.initialize(self.database_url)
        if self.apply_schema:
            await self.db_manager.apply_schema()
        self.connected = True
        return True

    async def close(self):
        await self.db_manager.close()
        self.connected = False

    async def health_check(self) -> bool:
        return await self.db_manager.health_check()

    @asynccontextmanager
    async def _transaction(self, readonly: bool) -> AsyncIterator[StoreSession]:
        async with self.db_manager.transaction(isolation=self.isolation, readonly=readonly) as conn:
            yield PostgresSession(conn)
