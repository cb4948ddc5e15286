"""
Notification repository for database access.
"""

from typing import Any

from shared.repository import BaseRepository

from .models import Notification


class NotificationRepository(BaseRepository[Notification]):
    """Repository for the notifications table."""

    async def list_for_user(self, user_id: str, limit: int) -> list[Notification]:
        """Newest notifications for a profile."""
        rows = await self._execute(
            self._db.table("notifications")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit),
            "fetch notifications",
        )
        return [Notification.model_validate(row) for row in rows]

    async def create(self, data: dict[str, Any]) -> Notification:
        rows = await self._execute(
            self._db.table("notifications").insert(data),
            "create notification",
        )
        return Notification.model_validate(rows[0])

    async def mark_read(self, notification_id: str) -> None:
        await self._execute(
            self._db.table("notifications").update({"read": True}).eq("id", notification_id),
            "mark notification as read",
        )

    async def mark_all_read(self, user_id: str) -> None:
        await self._execute(
            self._db.table("notifications")
            .update({"read": True})
            .eq("user_id", user_id)
            .eq("read", False),
            "mark all notifications as read",
        )

    async def delete(self, notification_id: str) -> None:
        await self._execute(
            self._db.table("notifications").delete().eq("id", notification_id),
            "delete notification",
        )
