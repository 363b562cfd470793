"""Daycare admin routes: waitlist, status changes, placements and policy."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ...models.base import ActingUser
from ...models.requests import DaycareUpdateRequest, StatusUpdateRequest
from ...models.results import (
    DaycarePolicyResult,
    PlacementEndResult,
    StatusUpdateResult,
    WaitlistResult,
)
from ...services import (
    DaycareSettingsService,
    EnrollmentManager,
    PlacementCommitter,
    WaitlistBuilder,
)
from ..dependencies import (
    get_current_user,
    get_daycare_settings,
    get_enrollment_manager,
    get_placement_committer,
    get_waitlist_builder,
)

router = APIRouter(prefix="/api/daycares", tags=["daycares"])


@router.get("/{daycare_id}/waitlist", response_model=WaitlistResult)
async def get_waitlist(
    daycare_id: UUID,
    policy: str | None = Query(default=None, description="One-off policy override"),
    user: ActingUser = Depends(get_current_user),
    builder: WaitlistBuilder = Depends(get_waitlist_builder)
) -> WaitlistResult:
    """
    Ranked waitlist for a daycare.

    Pending choices come first, then waitlisted ones; each group is ordered by
    the daycare's policy or by the `policy` query parameter. Positions are
    recomputed on every request.
    """
    return await builder.build(daycare_id, user, requested_policy=policy)


@router.patch("/applications/{choice_id}/status", response_model=StatusUpdateResult)
async def update_choice_status(
    choice_id: UUID,
    request: StatusUpdateRequest,
    user: ActingUser = Depends(get_current_user),
    committer: PlacementCommitter = Depends(get_placement_committer)
) -> StatusUpdateResult:
    """Change a choice's status; accepting it creates the placement."""
    return await committer.update_choice_status(
        choice_id, request.status, request.status_notes, user
    )


@router.patch("/enrollments/{placement_id}/end", response_model=PlacementEndResult)
async def end_placement(
    placement_id: UUID,
    user: ActingUser = Depends(get_current_user),
    manager: EnrollmentManager = Depends(get_enrollment_manager)
) -> PlacementEndResult:
    """End a placement and return its seat to the daycare."""
    return await manager.end_placement(placement_id, user)


@router.patch("/{daycare_id}", response_model=DaycarePolicyResult)
async def update_daycare(
    daycare_id: UUID,
    request: DaycareUpdateRequest,
    user: ActingUser = Depends(get_current_user),
    service: DaycareSettingsService = Depends(get_daycare_settings)
) -> DaycarePolicyResult:
    """Set the daycare's default waitlist policy."""
    return await service.update_policy(daycare_id, request.waitlist_policy, user)
