"""Ends placements and returns seats to a daycare."""

import time
from datetime import date
from uuid import UUID

from ..database.base import StoreSession, WaitlistStore
from ..models.base import ActingUser, Daycare, Placement
from ..models.results import PlacementEndResult
from ..utils.helpers import utc_today
from ..utils.logger import get_logger
from .access import authorize_daycare_scope

logger = get_logger()


async def release_placement(
    session: StoreSession,
    placement: Placement,
    end_date: date
) -> tuple[Placement, Daycare]:
    """End a placement and decrement its daycare's enrollment, floored at zero."""
    ended = await session.set_placement_end_date(placement.id, end_date)
    daycare = await session.adjust_enrollment(placement.daycare_id, -1)
    return ended, daycare


class EnrollmentManager:
    """Placement end-of-care workflow."""

    def __init__(self, store: WaitlistStore):
        self.store = store

    async def end_placement(self, placement_id: UUID, user: ActingUser) -> PlacementEndResult:
        """
        End a placement today.

        Ending a placement that has already ended changes nothing, so the
        seat is returned at most once. A placement whose start date is still
        in the future is cancelled the same way: its end date becomes today,
        before its start date, and it never counts as active again.

        Raises:
            NotFoundError: Placement does not exist (system admins)
            ForbiddenError: Caller does not administer the placement's daycare
        """
        start_time = time.time()
        today = utc_today()

        async def work(session: StoreSession) -> PlacementEndResult:
            placement = await session.get_placement(placement_id, for_update=True)
            await authorize_daycare_scope(
                session, user, placement.daycare_id if placement else None, "Placement", placement_id
            )

            if not placement.is_active(today):
                daycare = await session.get_daycare(placement.daycare_id)
                logger.log_warning(
                    f"Placement {placement_id} already ended on {placement.end_date}",
                    placement_id=str(placement_id)
                )
                return PlacementEndResult(
                    placement=placement,
                    already_ended=True,
                    current_enrollment=daycare.current_enrollment,
                    message="Placement already ended"
                )

            ended, daycare = await release_placement(session, placement, today)
            return PlacementEndResult(placement=ended, current_enrollment=daycare.current_enrollment)

        result = await self.store.run(work)
        if result.already_ended:
            return result

        logger.log_operation(
            "end_placement",
            (time.time() - start_time) * 1000,
            placement_id=placement_id,
            daycare_id=result.placement.daycare_id,
            current_enrollment=result.current_enrollment
        )
        return result
