"""Daycare settings that feed the waitlist."""

from uuid import UUID

from ..database.base import StoreSession, WaitlistStore
from ..models.base import ActingUser, Daycare, WaitlistPolicy
from ..models.results import DaycarePolicyResult
from ..utils.logger import get_logger
from .access import authorize_daycare_scope

logger = get_logger()


class DaycareSettingsService:
    def __init__(self, store: WaitlistStore):
        self.store = store

    async def update_policy(
        self,
        daycare_id: UUID,
        policy: WaitlistPolicy,
        user: ActingUser
    ) -> DaycarePolicyResult:
        """Persist the daycare's default waitlist policy."""
        async def work(session: StoreSession) -> Daycare:
            daycare = await session.get_daycare(daycare_id, for_update=True)
            await authorize_daycare_scope(
                session, user, daycare.id if daycare else None, "Daycare", daycare_id
            )
            return await session.update_daycare_policy(daycare_id, policy)

        daycare = await self.store.run(work)

        logger.log_info(
            f"Waitlist policy for daycare {daycare_id} set to {policy.value}",
            daycare_id=str(daycare_id),
            user_id=str(user.user_id)
        )
        return DaycarePolicyResult(
            daycare_id=daycare_id,
            waitlist_policy=WaitlistPolicy.resolve(daycare.waitlist_policy)
        )
