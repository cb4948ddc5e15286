"""
Notifications module interfaces.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .models import Notification, NotificationType


@runtime_checkable
class INotificationRepository(Protocol):
    """Interface for notification persistence."""

    async def list_for_user(self, user_id: str, limit: int) -> list[Notification]:
        ...

    async def create(self, data: dict[str, Any]) -> Notification:
        ...

    async def mark_read(self, notification_id: str) -> None:
        ...

    async def mark_all_read(self, user_id: str) -> None:
        ...

    async def delete(self, notification_id: str) -> None:
        ...


@runtime_checkable
class INotifier(Protocol):
    """
    Interface used by other modules to tell a profile about something.

    Callers treat delivery as best effort.
    """

    async def notify(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> Optional[Notification]:
        """
        Insert a notification row.

        Returns:
            The stored notification, or None when notifications are disabled.

        Raises:
            GuideError: If the insert failed.
        """
        ...
