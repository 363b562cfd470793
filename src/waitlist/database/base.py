"""Storage interface used by the waitlist and placement services."""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import TypeVar
from uuid import UUID

from ..models.base import (
    Application,
    ApplicationChoice,
    Child,
    ChoiceStatus,
    Daycare,
    Placement,
    WaitlistCandidate,
    WaitlistPolicy,
)
from ..utils.exceptions import TransactionFailure, WaitlistError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreSession(ABC):
    """Operations available inside one transaction."""

    # Daycares
    @abstractmethod
    async def get_daycare(self, daycare_id: UUID, for_update: bool = False) -> Daycare | None:
        pass

    @abstractmethod
    async def update_daycare_policy(self, daycare_id: UUID, policy: WaitlistPolicy) -> Daycare:
        pass

    @abstractmethod
    async def is_daycare_admin(self, user_id: UUID, daycare_id: UUID) -> bool:
        pass

    @abstractmethod
    async def adjust_enrollment(self, daycare_id: UUID, delta: int) -> Daycare:
        """
        Add delta to current_enrollment in a single update, never going below zero.

        Returns:
            The daycare after the update
        """
        pass

    # Waitlist
    @abstractmethod
    async def list_waitlist_candidates(self, daycare_id: UUID, on: date) -> list[WaitlistCandidate]:
        """
        Pending and waitlisted choices for a daycare joined with application, child,
        parent and the child's placement active on the given date, in insertion order.
        """
        pass

    # Applications and choices
    @abstractmethod
    async def get_choice(self, choice_id: UUID, for_update: bool = False) -> ApplicationChoice | None:
        pass

    @abstractmethod
    async def update_choice_status(
        self,
        choice_id: UUID,
        status: ChoiceStatus,
        notes: str | None,
        updated_at: datetime
    ) -> ApplicationChoice:
        pass

    @abstractmethod
    async def get_application(self, application_id: UUID) -> Application | None:
        pass

    @abstractmethod
    async def get_child(self, child_id: UUID) -> Child | None:
        pass

    @abstractmethod
    async def lock_child(self, child_id: UUID) -> None:
        """
        Serialise placement changes for one child.

        A concurrent transaction that already placed the child either blocks this
        one until it commits or makes it fail with a retryable serialization error.
        """
        pass

    @abstractmethod
    async def child_has_active_application(self, child_id: UUID) -> bool:
        """True when any application of the child has a pending or waitlisted choice."""
        pass

    @abstractmethod
    async def insert_application(
        self,
        child_id: UUID,
        parent_id: UUID,
        desired_start_date: date,
        notes: str | None,
        opt_in_parent_network: bool
    ) -> Application:
        pass

    @abstractmethod
    async def insert_choice(
        self,
        application_id: UUID,
        daycare_id: UUID,
        preference_rank: int
    ) -> ApplicationChoice:
        pass

    @abstractmethod
    async def insert_parent_network_request(
        self,
        parent_id: UUID,
        application_id: UUID,
        desired_area: str | None
    ) -> UUID:
        pass

    @abstractmethod
    async def withdraw_choices(self, application_id: UUID, updated_at: datetime) -> int:
        """Mark every non-terminal choice of an application withdrawn; returns the count."""
        pass

    # Placements
    @abstractmethod
    async def get_placement(self, placement_id: UUID, for_update: bool = False) -> Placement | None:
        pass

    @abstractmethod
    async def find_active_placement_for_choice(self, choice_id: UUID, on: date) -> Placement | None:
        pass

    @abstractmethod
    async def find_active_placement_for_child(self, child_id: UUID, on: date) -> Placement | None:
        pass

    @abstractmethod
    async def insert_placement(
        self,
        child_id: UUID,
        daycare_id: UUID,
        application_choice_id: UUID,
        start_date: date
    ) -> Placement:
        pass

    @abstractmethod
    async def set_placement_end_date(self, placement_id: UUID, end_date: date) -> Placement:
        pass


class WaitlistStore(ABC):
    """Abstract transactional store."""

    # errors after which the whole unit of work may be run again
    retryable_errors: tuple[type[Exception], ...] = ()

    def __init__(self, max_attempts: int = 3):
        self.connected = False
        self.max_attempts = max(max_attempts, 1)

    @abstractmethod
    async def connect(self) -> bool:
        pass

    @abstractmethod
    async def close(self):
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass

    @abstractmethod
    def _transaction(self, readonly: bool) -> "AsyncIterator[StoreSession]":
        """Backend-specific begin/commit/rollback around a session."""
        pass

    @asynccontextmanager
    async def transaction(self, readonly: bool = False) -> AsyncIterator[StoreSession]:
        """
        Run a block atomically.

        Domain errors raised inside the block roll back and propagate unchanged.
        Any other failure rolls back and is raised as TransactionFailure.
        """
        try:
            async with self._transaction(readonly) as session:
                yield session
        except WaitlistError:
            raise
        except Exception as e:
            logger.error(f"Transaction rolled back: {e}")
            raise TransactionFailure(details={"cause": type(e).__name__}) from e

    async def run(
        self,
        work: Callable[[StoreSession], Awaitable[T]],
        readonly: bool = False
    ) -> T:
        """
        Run a unit of work in a transaction, retrying it on serialization conflicts.

        The work callable must do all of its reads and writes through the session
        it is given, since a retry runs it again from the start.

        Raises:
            WaitlistError: Raised by the work itself; never retried
            TransactionFailure: Storage failure, or conflicts on every attempt
        """
        attempt = 1
        while True:
            try:
                async with self.transaction(readonly) as session:
                    return await work(session)
            except TransactionFailure as e:
                if attempt >= self.max_attempts or not isinstance(e.__cause__, self.retryable_errors):
                    raise
                logger.warning(
                    f"Transaction conflict ({type(e.__cause__).__name__}), "
                    f"retrying attempt {attempt + 1}/{self.max_attempts}"
                )
                attempt += 1
