"""Parent-side application workflow: submission and withdrawal."""

from datetime import date
from uuid import UUID

from ..database.base import StoreSession, WaitlistStore
from ..models.base import ActingUser, UserRole
from ..models.results import ApplicationResult, WithdrawResult
from ..utils.exceptions import (
    ActiveApplicationExistsError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from ..utils.helpers import utc_now
from ..utils.logger import get_logger

logger = get_logger()


class ApplicationService:
    """Creates applications with ranked daycare choices and withdraws them."""

    def __init__(self, store: WaitlistStore):
        self.store = store

    async def submit(
        self,
        user: ActingUser,
        child_id: UUID,
        desired_start_date: date,
        daycare_ids: list[UUID],
        notes: str | None = None,
        opt_in_parent_network: bool = False,
        desired_area: str | None = None
    ) -> ApplicationResult:
        """
        Submit an application; choices are ranked in the order given.

        Opting in to the parent network also records a network request for
        the parent, with the area they want to be matched in.

        Raises:
            ForbiddenError: Caller is not a parent or does not own the child
            ValidationError: No choices, duplicate daycares or unknown daycare
            ActiveApplicationExistsError: Child already has a pending or waitlisted choice
        """
        if user.role != UserRole.PARENT:
            raise ForbiddenError()
        if not daycare_ids:
            raise ValidationError("At least one daycare choice is required", field="daycareChoices")
        if len(set(daycare_ids)) != len(daycare_ids):
            raise ValidationError(
                "A daycare may only be chosen once",
                field="daycareChoices",
                value=[str(d) for d in daycare_ids]
            )

        async def work(session: StoreSession) -> ApplicationResult:
            child = await session.get_child(child_id)
            if child is None or child.parent_id != user.user_id:
                raise ForbiddenError("Child not found or access denied")

            if await session.child_has_active_application(child_id):
                raise ActiveApplicationExistsError(child_id)

            for daycare_id in daycare_ids:
                daycare = await session.get_daycare(daycare_id)
                if daycare is None or not daycare.is_active:
                    raise ValidationError(
                        "Unknown daycare", field="daycareChoices", value=str(daycare_id)
                    )

            application = await session.insert_application(
                child_id=child_id,
                parent_id=user.user_id,
                desired_start_date=desired_start_date,
                notes=notes,
                opt_in_parent_network=opt_in_parent_network
            )
            choices = [
                await session.insert_choice(application.id, daycare_id, rank)
                for rank, daycare_id in enumerate(daycare_ids, start=1)
            ]

            network_request_id = None
            if opt_in_parent_network:
                network_request_id = await session.insert_parent_network_request(
                    user.user_id, application.id, desired_area
                )

            return ApplicationResult(
                application_id=application.id,
                application_date=application.application_date,
                choices=choices,
                parent_network_request_id=network_request_id
            )

        result = await self.store.run(work)

        logger.log_info(
            f"Application {result.application_id} submitted with {len(result.choices)} choices",
            application_id=str(result.application_id),
            child_id=str(child_id),
            parent_network=opt_in_parent_network
        )
        return result

    async def withdraw(self, user: ActingUser, application_id: UUID) -> WithdrawResult:
        """
        Withdraw every pending or waitlisted choice of the parent's application.

        Raises:
            NotFoundError: Application does not exist or belongs to another parent
        """
        async def work(session: StoreSession) -> int:
            application = await session.get_application(application_id)
            if application is None or application.parent_id != user.user_id:
                raise NotFoundError("Application not found", "Application", application_id)

            return await session.withdraw_choices(application_id, utc_now())

        count = await self.store.run(work)

        logger.log_info(
            f"Application {application_id} withdrawn ({count} choices)",
            application_id=str(application_id)
        )
        return WithdrawResult(application_id=application_id, withdrawn_choices=count)
