"""Waitlist, placement and enrollment services."""

from .access import authorize_daycare_scope
from .applications import ApplicationService
from .daycares import DaycareSettingsService
from .enrollment import EnrollmentManager, release_placement
from .placement import PlacementCommitter, parse_admin_status
from .waitlist import WaitlistBuilder

__all__ = [
    "ApplicationService",
    "DaycareSettingsService",
    "EnrollmentManager",
    "PlacementCommitter",
    "WaitlistBuilder",
    "authorize_daycare_scope",
    "parse_admin_status",
    "release_placement",
]
