"""Daycare-scoped authorization checks."""

from uuid import UUID

from ..database.base import StoreSession
from ..models.base import ActingUser
from ..utils.exceptions import ForbiddenError, NotFoundError


async def authorize_daycare_scope(
    session: StoreSession,
    user: ActingUser,
    daycare_id: UUID | None,
    resource_type: str,
    resource_id: UUID
) -> None:
    """
    Check that the user may act on a resource owned by a daycare.

    daycare_id is None when the resource does not exist. Only system admins
    learn that a resource is missing; daycare admins get the same
    ForbiddenError for a missing resource and for another daycare's resource.

    Raises:
        ForbiddenError: Caller is not an admin of the owning daycare
        NotFoundError: Resource does not exist (system admins only)
    """
    if not user.is_admin:
        raise ForbiddenError()

    if user.is_system_admin:
        if daycare_id is None:
            raise NotFoundError(f"{resource_type} not found", resource_type, resource_id)
        return

    if daycare_id is None or not await session.is_daycare_admin(user.user_id, daycare_id):
        raise ForbiddenError()
