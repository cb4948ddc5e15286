"""
Feedback module interfaces.
"""

from typing import Any, Protocol, runtime_checkable

from .models import Feedback


@runtime_checkable
class IFeedbackRepository(Protocol):
    """Interface for feedback persistence."""

    async def list_for_experience(self, experience_id: str) -> list[Feedback]:
        """Feedback for an experience with the guest embedded, newest first."""
        ...

    async def create(self, data: dict[str, Any]) -> Feedback:
        """
        Insert a feedback row.

        Raises:
            ConflictError: If the booking already has feedback.
        """
        ...

    async def booking_ids_with_feedback(self, booking_ids: list[str]) -> set[str]:
        ...
