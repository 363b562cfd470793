"""Result models for waitlist and placement operations."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..utils.helpers import utc_now
from .base import (
    ApplicationChoice,
    ChoiceStatus,
    CurrentPlacement,
    Placement,
    WaitlistCandidate,
    WaitlistPolicy,
)


class WaitlistEntry(BaseModel):
    """One row of a daycare's ranked waitlist."""
    position: int = Field(..., ge=1)  # recomputed on every read, never stored
    choice_id: UUID
    preference_rank: int
    status: ChoiceStatus
    application_id: UUID
    application_date: datetime
    desired_start_date: date
    child_id: UUID
    child_first_name: str
    child_last_name: str
    date_of_birth: date
    is_inuk: bool
    languages_spoken_at_home: list[str] = Field(default_factory=list)
    has_special_needs: bool = False
    parent_email: str
    parent_phone: Optional[str] = None
    parent_first_name: Optional[str] = None
    parent_last_name: Optional[str] = None
    has_current_placement: bool = False
    current_placement: Optional[CurrentPlacement] = None

    @classmethod
    def from_candidate(cls, position: int, candidate: WaitlistCandidate) -> "WaitlistEntry":
        child = candidate.child
        parent = candidate.parent
        return cls(
            position=position,
            choice_id=candidate.choice_id,
            preference_rank=candidate.preference_rank,
            status=candidate.status,
            application_id=candidate.application_id,
            application_date=candidate.application_date,
            desired_start_date=candidate.desired_start_date,
            child_id=child.id,
            child_first_name=child.first_name,
            child_last_name=child.last_name,
            date_of_birth=child.date_of_birth,
            is_inuk=child.is_inuk,
            languages_spoken_at_home=list(child.languages_spoken_at_home),
            has_special_needs=child.has_special_needs,
            parent_email=parent.email,
            parent_phone=parent.phone,
            parent_first_name=parent.first_name,
            parent_last_name=parent.last_name,
            has_current_placement=candidate.has_active_placement_elsewhere,
            current_placement=candidate.current_placement,
        )


class WaitlistResult(BaseModel):
    """Ranked waitlist for a daycare under one policy."""
    daycare_id: UUID
    policy: WaitlistPolicy
    total: int = 0
    entries: list[WaitlistEntry] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utc_now)
    processing_time_ms: Optional[int] = None


class StatusUpdateResult(BaseModel):
    """Outcome of an admin status change."""
    choice_id: UUID
    previous_status: ChoiceStatus
    status: ChoiceStatus
    placement_created: bool = False
    placement_ended: bool = False
    placement: Optional[Placement] = None
    current_enrollment: Optional[int] = None
    message: str = "Application status updated successfully"


class PlacementEndResult(BaseModel):
    """Outcome of ending a placement."""
    placement: Placement
    already_ended: bool = False
    current_enrollment: int
    message: str = "Placement ended successfully"


class DaycarePolicyResult(BaseModel):
    daycare_id: UUID
    waitlist_policy: WaitlistPolicy
    message: str = "Daycare updated successfully"


class ApplicationResult(BaseModel):
    """A newly submitted application with its ranked choices."""
    application_id: UUID
    application_date: datetime
    choices: list[ApplicationChoice] = Field(default_factory=list)
    parent_network_request_id: Optional[UUID] = None
    message: str = "Application submitted successfully"


class WithdrawResult(BaseModel):
    application_id: UUID
    withdrawn_choices: int = 0
    message: str = "Application withdrawn successfully"
