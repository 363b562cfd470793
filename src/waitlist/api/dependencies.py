"""
FastAPI dependency injection for the waitlist API
"""
from uuid import UUID

from fastapi import Depends, Header

from ..config import Settings, settings
from ..database import WaitlistStore, get_store
from ..models.base import ActingUser, UserRole
from ..ranking.policies import WaitlistRanker
from ..services import (
    ApplicationService,
    DaycareSettingsService,
    EnrollmentManager,
    PlacementCommitter,
    WaitlistBuilder,
)
from ..utils.exceptions import AuthenticationError


def get_settings() -> Settings:
    """Get application settings"""
    return settings


async def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None)
) -> ActingUser:
    """
    Identity forwarded by the authentication gateway.

    The gateway has already verified the caller; these headers are trusted.
    """
    if not x_user_id or not x_user_role:
        raise AuthenticationError()

    try:
        return ActingUser(user_id=UUID(x_user_id), role=UserRole(x_user_role))
    except ValueError:
        raise AuthenticationError("Invalid identity headers") from None


def get_waitlist_builder(
    store: WaitlistStore = Depends(get_store),
    config: Settings = Depends(get_settings)
) -> WaitlistBuilder:
    # unseeded: the random policy must differ between requests
    return WaitlistBuilder(
        store,
        ranker=WaitlistRanker(),
        default_policy=config.default_waitlist_policy
    )


def get_placement_committer(
    store: WaitlistStore = Depends(get_store),
    config: Settings = Depends(get_settings)
) -> PlacementCommitter:
    return PlacementCommitter(store, reverse_on_deaccept=config.reverse_placement_on_deaccept)


def get_enrollment_manager(store: WaitlistStore = Depends(get_store)) -> EnrollmentManager:
    return EnrollmentManager(store)


def get_daycare_settings(store: WaitlistStore = Depends(get_store)) -> DaycareSettingsService:
    return DaycareSettingsService(store)


def get_application_service(store: WaitlistStore = Depends(get_store)) -> ApplicationService:
    return ApplicationService(store)
