"""Assembles a daycare's ranked waitlist."""

import time
from uuid import UUID

from ..database.base import StoreSession, WaitlistStore
from ..models.base import ActingUser, Daycare, WaitlistCandidate, WaitlistPolicy
from ..models.results import WaitlistEntry, WaitlistResult
from ..ranking.policies import WaitlistRanker
from ..utils.helpers import utc_now, utc_today
from ..utils.logger import get_logger
from .access import authorize_daycare_scope

logger = get_logger()


class WaitlistBuilder:
    """Read-only view of pending and waitlisted choices, ranked by policy."""

    def __init__(
        self,
        store: WaitlistStore,
        ranker: WaitlistRanker | None = None,
        default_policy: WaitlistPolicy | str = WaitlistPolicy.APPLICATION_DATE
    ):
        self.store = store
        self.ranker = ranker or WaitlistRanker()
        self.default_policy = WaitlistPolicy.resolve(default_policy)

    async def build(
        self,
        daycare_id: UUID,
        user: ActingUser,
        requested_policy: str | None = None
    ) -> WaitlistResult:
        """
        Build the waitlist for a daycare.

        Args:
            daycare_id: Daycare whose waitlist is requested
            user: Acting admin
            requested_policy: One-off policy override; the stored policy is used when empty

        Returns:
            WaitlistResult with entries in ranked order and 1-based positions

        Raises:
            NotFoundError: Daycare does not exist (system admins)
            ForbiddenError: Caller does not administer the daycare
        """
        start_time = time.time()

        async def work(session: StoreSession) -> tuple[Daycare, list[WaitlistCandidate]]:
            daycare = await session.get_daycare(daycare_id)
            await authorize_daycare_scope(
                session, user, daycare.id if daycare else None, "Daycare", daycare_id
            )
            return daycare, await session.list_waitlist_candidates(daycare_id, utc_today())

        daycare, candidates = await self.store.run(work, readonly=True)

        if requested_policy:
            policy = WaitlistPolicy.resolve(requested_policy)
        else:
            policy = WaitlistPolicy.resolve(daycare.waitlist_policy, default=self.default_policy)

        for candidate in candidates:
            candidate.has_active_placement_elsewhere = self._has_active_placement(candidate)

        ranked = self.ranker.rank(candidates, policy)
        entries = [
            WaitlistEntry.from_candidate(position, candidate)
            for position, candidate in enumerate(ranked, start=1)
        ]

        duration_ms = (time.time() - start_time) * 1000
        logger.log_operation(
            "build_waitlist",
            duration_ms,
            daycare_id=daycare_id,
            policy=policy.value,
            entries=len(entries)
        )

        return WaitlistResult(
            daycare_id=daycare_id,
            policy=policy,
            total=len(entries),
            entries=entries,
            generated_at=utc_now(),
            processing_time_ms=int(duration_ms)
        )

    @staticmethod
    def _has_active_placement(candidate: WaitlistCandidate) -> bool:
        # system-wide: a placement at this same daycare also counts
        return candidate.current_placement is not None
