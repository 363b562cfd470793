"""Admin status changes on application choices, including acceptance into a placement."""

import time
from datetime import date
from uuid import UUID

from ..database.base import StoreSession, WaitlistStore
from ..models.base import ActingUser, ApplicationChoice, ChoiceStatus
from ..models.results import StatusUpdateResult
from ..utils.exceptions import InvalidStatusError, NotFoundError, PlacementConflictError
from ..utils.helpers import utc_now
from ..utils.logger import get_logger
from .access import authorize_daycare_scope
from .enrollment import release_placement

logger = get_logger()


def parse_admin_status(value: str | ChoiceStatus) -> ChoiceStatus:
    """Validate a status an admin wants to assign."""
    allowed = ChoiceStatus.admin_settable()
    try:
        status = ChoiceStatus(value)
    except ValueError:
        raise InvalidStatusError(value, [s.value for s in allowed]) from None
    if status not in allowed:
        raise InvalidStatusError(value, [s.value for s in allowed])
    return status


class PlacementCommitter:
    """
    Applies an admin's status change to an application choice.

    The status update, the placement insert and the enrollment increment of an
    acceptance run in one transaction. Accepting a choice that already has an
    active placement is a no-op for placements and enrollment.
    """

    def __init__(self, store: WaitlistStore, reverse_on_deaccept: bool = False):
        self.store = store
        self.reverse_on_deaccept = reverse_on_deaccept

    async def update_choice_status(
        self,
        choice_id: UUID,
        new_status: str | ChoiceStatus,
        notes: str | None,
        user: ActingUser
    ) -> StatusUpdateResult:
        """
        Change a choice's status on behalf of an admin.

        Raises:
            InvalidStatusError: Status outside pending/accepted/rejected/waitlisted,
                or the choice was withdrawn by the parent
            NotFoundError: Choice or its application does not exist
            ForbiddenError: Caller does not administer the choice's daycare
            PlacementConflictError: Child already holds an active placement from another choice
        """
        start_time = time.time()
        status = parse_admin_status(new_status)
        now = utc_now()
        today = now.date()

        async def work(session: StoreSession) -> StatusUpdateResult:
            choice = await session.get_choice(choice_id, for_update=True)
            await authorize_daycare_scope(
                session, user, choice.daycare_id if choice else None, "ApplicationChoice", choice_id
            )

            # a withdrawn choice belongs to the parent; admins cannot revive it
            if choice.status == ChoiceStatus.WITHDRAWN:
                raise InvalidStatusError(
                    status.value, [], details={"current_status": choice.status.value}
                )

            previous_status = choice.status
            await session.update_choice_status(choice_id, status, notes, now)

            result = StatusUpdateResult(
                choice_id=choice_id,
                previous_status=previous_status,
                status=status
            )

            if status == ChoiceStatus.ACCEPTED:
                await self._accept(session, choice, today, result)
            elif previous_status == ChoiceStatus.ACCEPTED and self.reverse_on_deaccept:
                await self._reverse(session, choice, today, result)
            return result

        result = await self.store.run(work)

        logger.log_operation(
            "update_choice_status",
            (time.time() - start_time) * 1000,
            choice_id=choice_id,
            previous_status=result.previous_status.value,
            status=status.value,
            placement_created=result.placement_created,
            placement_ended=result.placement_ended
        )
        return result

    async def _accept(
        self,
        session: StoreSession,
        choice: ApplicationChoice,
        today: date,
        result: StatusUpdateResult
    ):
        existing = await session.find_active_placement_for_choice(choice.id, today)
        if existing:
            daycare = await session.get_daycare(choice.daycare_id)
            result.placement = existing
            result.current_enrollment = daycare.current_enrollment
            result.message = "Choice already accepted; placement unchanged"
            return

        application = await session.get_application(choice.application_id)
        if application is None:
            raise NotFoundError("Application not found", "Application", choice.application_id)

        await session.lock_child(application.child_id)
        held = await session.find_active_placement_for_child(application.child_id, today)
        if held:
            raise PlacementConflictError(
                "Child already has an active placement",
                child_id=application.child_id,
                placement_id=held.id
            )

        result.placement = await session.insert_placement(
            child_id=application.child_id,
            daycare_id=choice.daycare_id,
            application_choice_id=choice.id,
            start_date=application.desired_start_date
        )
        daycare = await session.adjust_enrollment(choice.daycare_id, 1)
        result.placement_created = True
        result.current_enrollment = daycare.current_enrollment

    async def _reverse(
        self,
        session: StoreSession,
        choice: ApplicationChoice,
        today: date,
        result: StatusUpdateResult
    ):
        existing = await session.find_active_placement_for_choice(choice.id, today)
        if not existing:
            return
        result.placement, daycare = await release_placement(session, existing, today)
        result.placement_ended = True
        result.current_enrollment = daycare.current_enrollment
