"""
Messages module data models.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Message(BaseModel):
    """A chat entry scoped to one booking. Append-only."""

    id: str
    booking_id: str
    sender_profile_id: str
    body: str
    created_at: datetime

    model_config = {"extra": "ignore"}


class MessageFeedState(BaseModel):
    """
    Observable state of a booking's message channel.

    `messages` is always sorted by created_at, oldest first, and holds each
    message id at most once.
    """

    booking_id: Optional[str] = None
    messages: list[Message] = Field(default_factory=list)
    loading: bool = False
    connected: bool = False
    error: Optional[str] = None

    model_config = {"frozen": True}
