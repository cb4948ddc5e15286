"""
Notification service.

Lists, marks and deletes a profile's notifications, and implements
INotifier for modules that need to notify someone.
"""

import logging
from typing import Any, Callable, Optional

from shared.config import Settings, get_settings
from shared.exceptions import GuideError
from shared.models import MutationResult
from shared.state import StateStore

from .interfaces import INotificationRepository
from .models import Notification, NotificationsState, NotificationType

logger = logging.getLogger(__name__)


class NotificationService:
    """Notification list for one signed-in profile at a time."""

    def __init__(
        self,
        repository: INotificationRepository,
        settings: Optional[Settings] = None,
    ):
        self._repository = repository
        self._settings = settings or get_settings()
        self._store: StateStore[NotificationsState] = StateStore(NotificationsState())
        self._user_id: Optional[str] = None

    @property
    def state(self) -> NotificationsState:
        return self._store.state

    @property
    def unread_count(self) -> int:
        return self.state.unread_count

    def subscribe(self, listener: Callable[[NotificationsState], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    async def load(self, user_id: Optional[str]) -> list[Notification]:
        """
        Fetch the newest notifications for `user_id`.

        A missing user id empties the list without a round trip.
        """
        self._user_id = user_id
        if not user_id:
            self._store.reset(NotificationsState())
            return []

        self._store.update(loading=True)
        try:
            notifications = await self._repository.list_for_user(
                user_id, self._settings.notification_limit
            )
        except GuideError as e:
            logger.warning(f"Failed to fetch notifications for {user_id}: {e.message}")
            self._store.update(loading=False, error=e.message)
            return list(self.state.notifications)

        self._store.update(notifications=notifications, loading=False, error=None)
        return notifications

    async def refresh(self) -> list[Notification]:
        return await self.load(self._user_id)

    async def mark_read(self, notification_id: str) -> MutationResult[None]:
        try:
            await self._repository.mark_read(notification_id)
        except GuideError as e:
            return self._fail(e)
        self._store.update(
            notifications=[
                n.model_copy(update={"read": True}) if n.id == notification_id else n
                for n in self.state.notifications
            ]
        )
        return MutationResult.ok()

    async def mark_all_read(self) -> MutationResult[None]:
        if not self._user_id:
            return MutationResult.ok()
        try:
            await self._repository.mark_all_read(self._user_id)
        except GuideError as e:
            return self._fail(e)
        self._store.update(
            notifications=[n.model_copy(update={"read": True}) for n in self.state.notifications]
        )
        return MutationResult.ok()

    async def delete(self, notification_id: str) -> MutationResult[None]:
        try:
            await self._repository.delete(notification_id)
        except GuideError as e:
            return self._fail(e)
        self._store.update(
            notifications=[n for n in self.state.notifications if n.id != notification_id]
        )
        return MutationResult.ok()

    async def notify(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> Optional[Notification]:
        if not self._settings.enable_notifications:
            logger.debug(f"Notifications disabled, skipping {type.value} for {user_id}")
            return None

        notification = await self._repository.create(
            {
                "user_id": user_id,
                "type": type.value,
                "title": title,
                "message": message,
                "data": data,
            }
        )
        if user_id == self._user_id:
            self._store.update(notifications=[notification, *self.state.notifications])
        return notification

    def _fail(self, error: GuideError) -> MutationResult:
        logger.warning(f"Notification operation failed: {error.message}")
        self._store.update(error=error.message)
        return MutationResult.fail(error)
