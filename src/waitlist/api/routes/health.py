"""
Health check and service information routes
"""

from fastapi import APIRouter, Depends

from ...config import Settings
from ...database import WaitlistStore, get_store
from ...models.base import WaitlistPolicy
from ...utils.helpers import utc_now
from ..dependencies import get_settings

router = APIRouter(tags=["System"])


@router.get("/")
async def root(config: Settings = Depends(get_settings)):
    """Service information."""
    return {
        "service": config.app_name,
        "version": config.app_version,
        "database_backend": config.database_backend.value,
        "waitlist_policies": [policy.value for policy in WaitlistPolicy],
        "endpoints": {
            "GET /api/daycares/{id}/waitlist": "Ranked waitlist for a daycare",
            "PATCH /api/daycares/{id}": "Set the daycare's default waitlist policy",
            "PATCH /api/daycares/applications/{choiceId}/status": "Change a choice's status",
            "PATCH /api/daycares/enrollments/{placementId}/end": "End a placement",
            "POST /api/applications": "Submit an application",
            "PATCH /api/applications/{id}/withdraw": "Withdraw an application",
        }
    }


@router.get("/health")
async def health_check(
    store: WaitlistStore = Depends(get_store),
    config: Settings = Depends(get_settings)
):
    """Health check endpoint with store status"""
    store_healthy = await store.health_check()
    return {
        "status": "healthy" if store_healthy else "degraded",
        "service": config.app_name,
        "version": config.app_version,
        "timestamp": utc_now().isoformat(),
        "database": {
            "backend": config.database_backend.value,
            "status": "healthy" if store_healthy else "unhealthy",
            "connected": store.connected
        }
    }
