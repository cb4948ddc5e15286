"""
Bookings module data models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from modules.experiences.models import Experience


class BookingStatus(str, Enum):
    """
    Booking lifecycle.

    A booking starts pending and moves once, to confirmed or cancelled.
    Both of those are terminal.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self != BookingStatus.PENDING

    def can_transition_to(self, target: "BookingStatus") -> bool:
        return self == BookingStatus.PENDING and target in (
            BookingStatus.CONFIRMED,
            BookingStatus.CANCELLED,
        )


class GuestSummary(BaseModel):
    """The guest profile embedded in a booking row."""

    id: Optional[str] = None
    full_name: str = ""
    city: Optional[str] = None
    verified: bool = False

    model_config = {"extra": "ignore"}


class Booking(BaseModel):
    """A guest's request to join an experience."""

    id: str
    experience_id: str
    guest_id: str
    status: BookingStatus = BookingStatus.PENDING
    guest_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    experience: Optional[Experience] = Field(None, alias="experiences")
    guest: Optional[GuestSummary] = Field(None, alias="profiles")

    model_config = {"extra": "ignore", "populate_by_name": True}

    @property
    def host_id(self) -> Optional[str]:
        return self.experience.host_id if self.experience else None


class BookingRequest(BaseModel):
    """What a guest supplies to request a booking."""

    experience_id: str = Field(..., min_length=1)
    guest_message: Optional[str] = Field(None, max_length=2000)

    model_config = {"extra": "forbid"}


class BookingsState(BaseModel):
    """Observable state of the signed-in profile's bookings."""

    bookings: list[Booking] = Field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None

    model_config = {"frozen": True}
