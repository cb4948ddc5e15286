"""
Messages module interfaces.
"""

from typing import Protocol, runtime_checkable

from .models import Message


@runtime_checkable
class IMessageRepository(Protocol):
    """Interface for message persistence."""

    async def list_for_booking(self, booking_id: str) -> list[Message]:
        """All messages of a booking, oldest first."""
        ...

    async def create(self, booking_id: str, sender_profile_id: str, body: str) -> Message:
        """Insert a message and return the stored row."""
        ...
