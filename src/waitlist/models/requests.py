"""Request bodies accepted by the HTTP routes."""

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .base import WaitlistPolicy


class StatusUpdateRequest(BaseModel):
    """Body of PATCH /daycares/applications/{choiceId}/status."""
    model_config = ConfigDict(populate_by_name=True)

    # validated by the committer so unknown values surface as InvalidStatus
    status: str
    status_notes: Optional[str] = Field(default=None, alias="statusNotes")


class DaycareUpdateRequest(BaseModel):
    """Body of PATCH /daycares/{id}."""
    model_config = ConfigDict(populate_by_name=True)

    waitlist_policy: WaitlistPolicy = Field(..., alias="waitlistPolicy")


class DaycareChoiceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    daycare_id: UUID = Field(..., alias="daycareId")


class ApplicationCreateRequest(BaseModel):
    """Body of POST /applications. Choices are listed in preference order."""
    model_config = ConfigDict(populate_by_name=True)

    child_id: UUID = Field(..., alias="childId")
    desired_start_date: date = Field(..., alias="desiredStartDate")
    notes: Optional[str] = None
    opt_in_parent_network: bool = Field(default=False, alias="optInParentNetwork")
    # only used when the parent opts in to the parent network
    desired_area: Optional[str] = Field(default=None, alias="desiredArea", max_length=255)
    daycare_choices: list[DaycareChoiceRequest] = Field(..., alias="daycareChoices", min_length=1)
