"""
Feedback module data models.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from modules.bookings.models import GuestSummary


MIN_RATING = 1
MAX_RATING = 5


class Feedback(BaseModel):
    """A guest's rating of an experience, one per booking."""

    id: str
    booking_id: str
    experience_id: str
    guest_id: str
    host_id: str
    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    guest: Optional[GuestSummary] = Field(None, alias="profiles")

    model_config = {"extra": "ignore", "populate_by_name": True}


class FeedbackCreate(BaseModel):
    """What a guest supplies when rating a booking."""

    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    comment: Optional[str] = Field(None, max_length=2000)

    model_config = {"extra": "forbid"}


class FeedbackState(BaseModel):
    """Observable feedback list for one experience."""

    experience_id: Optional[str] = None
    feedback: list[Feedback] = Field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def average_rating(self) -> Optional[float]:
        if not self.feedback:
            return None
        return sum(f.rating for f in self.feedback) / len(self.feedback)
