"""
Notifications module data models.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    """What a notification is about."""

    BOOKING_REQUEST = "booking_request"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    NEW_MESSAGE = "new_message"
    NEW_FEEDBACK = "new_feedback"
    EXPERIENCE_PUBLISHED = "experience_published"
    EXPERIENCE_UNPUBLISHED = "experience_unpublished"
    WELCOME = "welcome"


class Notification(BaseModel):
    """An in-app notification addressed to one profile."""

    id: str
    user_id: str = Field(..., description="Recipient profile ID")
    type: NotificationType
    title: str
    message: str
    data: Optional[dict[str, Any]] = None
    read: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"extra": "ignore"}


class NotificationsState(BaseModel):
    """Observable state of a profile's notification list."""

    notifications: list[Notification] = Field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)
