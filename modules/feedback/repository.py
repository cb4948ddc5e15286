"""
Feedback repository for database access.
"""

from typing import Any

from shared.repository import BaseRepository

from .models import Feedback


# feedback has two foreign keys to profiles; embed the guest explicitly
FEEDBACK_COLUMNS = "*, profiles:profiles!guest_id(*)"


class FeedbackRepository(BaseRepository[Feedback]):
    """Repository for the feedback table."""

    async def list_for_experience(self, experience_id: str) -> list[Feedback]:
        rows = await self._execute(
            self._db.table("feedback")
            .select(FEEDBACK_COLUMNS)
            .eq("experience_id", experience_id)
            .order("created_at", desc=True),
            "fetch feedback",
        )
        return [Feedback.model_validate(row) for row in rows]

    async def create(self, data: dict[str, Any]) -> Feedback:
        rows = await self._execute(
            self._db.table("feedback").insert(data),
            "submit feedback",
        )
        return Feedback.model_validate(rows[0])

    async def booking_ids_with_feedback(self, booking_ids: list[str]) -> set[str]:
        if not booking_ids:
            return set()
        rows = await self._execute(
            self._db.table("feedback").select("booking_id").in_("booking_id", booking_ids),
            "fetch feedback",
        )
        return {row["booking_id"] for row in rows}
