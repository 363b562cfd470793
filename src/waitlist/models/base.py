"""Base models for the waitlist service."""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..utils.helpers import utc_today


class UserRole(str, Enum):
    """Roles forwarded by the authentication layer."""
    PARENT = "parent"
    DAYCARE_ADMIN = "daycare_admin"
    FUNDER = "funder"
    SYSTEM_ADMIN = "system_admin"


class ChoiceStatus(str, Enum):
    """Lifecycle of an application choice."""
    PENDING = "pending"
    WAITLISTED = "waitlisted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"  # set by the parent only

    @classmethod
    def admin_settable(cls) -> list["ChoiceStatus"]:
        """Statuses a daycare or system admin may assign."""
        return [cls.PENDING, cls.ACCEPTED, cls.REJECTED, cls.WAITLISTED]

    @classmethod
    def on_waitlist(cls) -> list["ChoiceStatus"]:
        """Statuses that make a choice a waitlist candidate."""
        return [cls.PENDING, cls.WAITLISTED]


class WaitlistPolicy(str, Enum):
    """Named strategies for ordering a daycare's waitlist."""
    APPLICATION_DATE = "application_date"
    LANGUAGE = "language"
    INUK = "inuk"
    ENROLLED_ELSEWHERE = "enrolled_elsewhere"
    RANDOM = "random"

    @classmethod
    def resolve(
        cls,
        name: "str | WaitlistPolicy | None",
        default: "WaitlistPolicy | None" = None
    ) -> "WaitlistPolicy":
        """Map a stored or requested policy name to a policy, falling back for unknown names."""
        fallback = default or cls.APPLICATION_DATE
        if name is None:
            return fallback
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            return cls.APPLICATION_DATE


class ActingUser(BaseModel):
    """Trusted identity supplied by the authentication layer."""
    user_id: UUID
    role: UserRole

    @property
    def is_system_admin(self) -> bool:
        return self.role == UserRole.SYSTEM_ADMIN

    @property
    def is_admin(self) -> bool:
        return self.role in (UserRole.DAYCARE_ADMIN, UserRole.SYSTEM_ADMIN)


class Daycare(BaseModel):
    """Daycare with its seat counter and waitlist policy."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    capacity: int = Field(..., gt=0)
    # cached count of active placements; mutated only inside placement transactions
    current_enrollment: int = Field(default=0, ge=0)
    waitlist_policy: Optional[str] = WaitlistPolicy.APPLICATION_DATE.value
    is_active: bool = True


class ParentContact(BaseModel):
    """Parent (user) details shown to daycare admins."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None


class Child(BaseModel):
    """Child information used as ranking input."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    parent_id: UUID
    first_name: str
    last_name: str
    date_of_birth: date
    is_inuk: bool = False
    languages_spoken_at_home: List[str] = Field(default_factory=list)
    has_special_needs: bool = False


class Application(BaseModel):
    """A child's application for a submission cycle."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    child_id: UUID
    parent_id: UUID
    application_date: datetime
    desired_start_date: date
    notes: Optional[str] = None
    opt_in_parent_network: bool = False


class ParentNetworkRequest(BaseModel):
    """Request from an opted-in parent to be put in touch with nearby families."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    parent_id: UUID
    application_id: UUID
    desired_area: Optional[str] = None
    status: str = "pending"


class ApplicationChoice(BaseModel):
    """Ranked link between an application and a daycare."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    daycare_id: UUID
    preference_rank: int = Field(..., ge=1)
    status: ChoiceStatus = ChoiceStatus.PENDING
    status_notes: Optional[str] = None
    status_updated_at: Optional[datetime] = None


class Placement(BaseModel):
    """A child occupying a seat at a daycare."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    child_id: UUID
    daycare_id: UUID
    application_choice_id: Optional[UUID] = None  # audit back-reference only
    start_date: date
    end_date: Optional[date] = None

    def is_active(self, on: Optional[date] = None) -> bool:
        """A placement is active until its end date has been reached."""
        on = on or utc_today()
        return self.end_date is None or self.end_date > on


class CurrentPlacement(BaseModel):
    """Where a waitlisted child is currently placed."""
    placement_id: UUID
    daycare_id: UUID
    daycare_name: str


class WaitlistCandidate(BaseModel):
    """A pending or waitlisted choice joined with its application, child and parent."""
    model_config = ConfigDict(from_attributes=True)

    choice_id: UUID
    daycare_id: UUID
    preference_rank: int
    status: ChoiceStatus
    application_id: UUID
    application_date: datetime
    desired_start_date: date
    child: Child
    parent: ParentContact
    current_placement: Optional[CurrentPlacement] = None
    has_active_placement_elsewhere: bool = False
