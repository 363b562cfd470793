"""Tests for store selection and transaction semantics."""

from uuid import uuid4

import asyncpg
import pytest

from src.waitlist.config import DatabaseBackend, Settings
from src.waitlist.database import MemoryStore, PostgresStore, create_store
from src.waitlist.models.base import Daycare
from src.waitlist.utils.exceptions import ForbiddenError, TransactionFailure
from src.waitlist.utils.helpers import utc_today


class TestCreateStore:

    def test_memory_backend(self):
        store = create_store(Settings(database_backend=DatabaseBackend.MEMORY))

        assert isinstance(store, MemoryStore)

    def test_postgres_backend(self):
        config = Settings(
            database_backend=DatabaseBackend.POSTGRES,
            database_url="postgresql://waitlist@localhost/waitlist",
            transaction_isolation="serializable",
            database_pool_max_size=7
        )

        store = create_store(config)

        assert isinstance(store, PostgresStore)
        assert store.isolation == "serializable"
        assert store.db_manager.max_size == 7
        assert store.connected is False

    def test_attempts_from_settings(self):
        memory = create_store(Settings(database_backend=DatabaseBackend.MEMORY, transaction_max_attempts=5))
        postgres = create_store(Settings(
            database_backend=DatabaseBackend.POSTGRES,
            database_url="postgresql://waitlist@localhost/waitlist",
            transaction_max_attempts=0
        ))

        assert memory.max_attempts == 5
        assert postgres.max_attempts == 1

    def test_postgres_retries_serialization_conflicts(self):
        assert issubclass(asyncpg.exceptions.SerializationError, PostgresStore.retryable_errors)
        assert issubclass(asyncpg.exceptions.DeadlockDetectedError, PostgresStore.retryable_errors)
        assert not issubclass(asyncpg.exceptions.UniqueViolationError, PostgresStore.retryable_errors)
        assert MemoryStore.retryable_errors == ()

    async def test_postgres_unhealthy_before_connect(self):
        store = PostgresStore(database_url=None)

        assert await store.health_check() is False

    async def test_postgres_requires_url(self):
        store = PostgresStore(database_url=None)

        with pytest.raises(ValueError):
            await store.connect()


class TestMemoryTransactions:

    @pytest.fixture
    def daycare(self, store):
        return store.add_daycare(Daycare(id=uuid4(), name="Igloo Kids", capacity=4, current_enrollment=1))

    async def test_commit_on_clean_exit(self, store, daycare):
        async with store.transaction() as session:
            await session.adjust_enrollment(daycare.id, 1)

        assert store.tables.daycares[daycare.id].current_enrollment == 2

    async def test_readonly_discards_changes(self, store, daycare):
        async with store.transaction(readonly=True) as session:
            await session.adjust_enrollment(daycare.id, 1)

        assert store.tables.daycares[daycare.id].current_enrollment == 1

    async def test_domain_error_propagates_unchanged(self, store, daycare):
        with pytest.raises(ForbiddenError):
            async with store.transaction() as session:
                await session.adjust_enrollment(daycare.id, 1)
                raise ForbiddenError()

        assert store.tables.daycares[daycare.id].current_enrollment == 1

    async def test_other_errors_become_transaction_failure(self, store, daycare):
        with pytest.raises(TransactionFailure) as exc_info:
            async with store.transaction() as session:
                await session.set_placement_end_date(uuid4(), utc_today())

        assert isinstance(exc_info.value.__cause__, KeyError)
        assert exc_info.value.details == {"cause": "KeyError"}

    async def test_enrollment_floor(self, store, daycare):
        async with store.transaction() as session:
            await session.adjust_enrollment(daycare.id, -1)
            updated = await session.adjust_enrollment(daycare.id, -1)

        assert updated.current_enrollment == 0
        assert store.tables.daycares[daycare.id].current_enrollment == 0

    async def test_health_follows_connection(self):
        store = MemoryStore()
        assert await store.health_check() is False

        await store.connect()
        assert await store.health_check() is True

        await store.close()
        assert await store.health_check() is False


class TestRunUnitOfWork:

    @pytest.fixture
    def daycare(self, store):
        return store.add_daycare(Daycare(id=uuid4(), name="Igloo Kids", capacity=4, current_enrollment=1))

    async def test_returns_work_result(self, store, daycare):
        async def work(session):
            return await session.adjust_enrollment(daycare.id, 1)

        updated = await store.run(work)

        assert updated.current_enrollment == 2
        assert store.tables.daycares[daycare.id].current_enrollment == 2

    async def test_readonly_work_discards_changes(self, store, daycare):
        async def work(session):
            return await session.adjust_enrollment(daycare.id, 1)

        await store.run(work, readonly=True)

        assert store.tables.daycares[daycare.id].current_enrollment == 1

    async def test_retry_starts_from_committed_state(self, store, daycare, monkeypatch):
        monkeypatch.setattr(store, "retryable_errors", (ConnectionResetError,))
        attempts = []

        async def work(session):
            attempts.append(1)
            updated = await session.adjust_enrollment(daycare.id, 1)
            if len(attempts) == 1:
                raise ConnectionResetError("deadlock detected")
            return updated

        updated = await store.run(work)

        assert len(attempts) == 2
        assert updated.current_enrollment == 2
        assert store.tables.daycares[daycare.id].current_enrollment == 2

    async def test_domain_error_is_not_retried(self, store, daycare, monkeypatch):
        monkeypatch.setattr(store, "retryable_errors", (ConnectionResetError,))
        attempts = []

        async def work(session):
            attempts.append(1)
            raise ForbiddenError()

        with pytest.raises(ForbiddenError):
            await store.run(work)

        assert attempts == [1]

    async def test_single_attempt_store(self, daycare, monkeypatch):
        store = MemoryStore(max_attempts=1)
        store.add_daycare(daycare)
        monkeypatch.setattr(store, "retryable_errors", (ConnectionResetError,))
        attempts = []

        async def work(session):
            attempts.append(1)
            raise ConnectionResetError("could not serialize access")

        with pytest.raises(TransactionFailure):
            await store.run(work)

        assert attempts == [1]
