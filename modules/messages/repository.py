"""
Message repository for database access.
"""

from shared.repository import BaseRepository

from .models import Message


class MessageRepository(BaseRepository[Message]):
    """Repository for the messages table."""

    async def list_for_booking(self, booking_id: str) -> list[Message]:
        rows = await self._execute(
            self._db.table("messages")
            .select("*")
            .eq("booking_id", booking_id)
            .order("created_at", desc=False),
            "load messages",
        )
        return [Message.model_validate(row) for row in rows]

    async def create(self, booking_id: str, sender_profile_id: str, body: str) -> Message:
        rows = await self._execute(
            self._db.table("messages").insert(
                {
                    "booking_id": booking_id,
                    "sender_profile_id": sender_profile_id,
                    "body": body,
                }
            ),
            "send message",
        )
        return Message.model_validate(rows[0])
