"""Domain, request and result models."""

from .base import (
    ActingUser,
    Application,
    ApplicationChoice,
    Child,
    ChoiceStatus,
    CurrentPlacement,
    Daycare,
    ParentContact,
    Placement,
    UserRole,
    WaitlistCandidate,
    WaitlistPolicy,
)
from .requests import (
    ApplicationCreateRequest,
    DaycareChoiceRequest,
    DaycareUpdateRequest,
    StatusUpdateRequest,
)
from .results import (
    ApplicationResult,
    DaycarePolicyResult,
    PlacementEndResult,
    StatusUpdateResult,
    WaitlistEntry,
    WaitlistResult,
    WithdrawResult,
)

__all__ = [
    "ActingUser",
    "Application",
    "ApplicationChoice",
    "Child",
    "ChoiceStatus",
    "CurrentPlacement",
    "Daycare",
    "ParentContact",
    "Placement",
    "UserRole",
    "WaitlistCandidate",
    "WaitlistPolicy",
    "ApplicationCreateRequest",
    "DaycareChoiceRequest",
    "DaycareUpdateRequest",
    "StatusUpdateRequest",
    "ApplicationResult",
    "DaycarePolicyResult",
    "PlacementEndResult",
    "StatusUpdateResult",
    "WaitlistEntry",
    "WaitlistResult",
    "WithdrawResult",
]
