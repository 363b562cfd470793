"""Parent routes for submitting and withdrawing applications."""

from uuid import UUID

from fastapi import APIRouter, Depends

from ...models.base import ActingUser
from ...models.requests import ApplicationCreateRequest
from ...models.results import ApplicationResult, WithdrawResult
from ...services import ApplicationService
from ..dependencies import get_application_service, get_current_user

router = APIRouter(prefix="/api/applications", tags=["applications"])


@router.post("", response_model=ApplicationResult, status_code=201)
async def submit_application(
    request: ApplicationCreateRequest,
    user: ActingUser = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service)
) -> ApplicationResult:
    """Submit an application with daycare choices in preference order."""
    return await service.submit(
        user,
        child_id=request.child_id,
        desired_start_date=request.desired_start_date,
        daycare_ids=[choice.daycare_id for choice in request.daycare_choices],
        notes=request.notes,
        opt_in_parent_network=request.opt_in_parent_network,
        desired_area=request.desired_area
    )


@router.patch("/{application_id}/withdraw", response_model=WithdrawResult)
async def withdraw_application(
    application_id: UUID,
    user: ActingUser = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service)
) -> WithdrawResult:
    """Withdraw all open choices of an application."""
    return await service.withdraw(user, application_id)
