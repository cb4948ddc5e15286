import pytest
from unittest.mock import AsyncMock, MagicMock

from shared.config import Settings
from shared.exceptions import ExternalServiceError

from modules.notifications.interfaces import INotifier
from modules.notifications.models import Notification, NotificationType
from modules.notifications.repository import NotificationRepository
from modules.notifications.service import NotificationService


def make_notification(notification_id, read=False, user_id="guest-1"):
    return Notification(
        id=notification_id,
        user_id=user_id,
        type=NotificationType.BOOKING_CONFIRMED,
        title="Booking Confirmed",
        message='Your booking for "Medina walk" has been confirmed.',
        read=read,
    )


def create_mock_repository(notifications=None):
    repository = MagicMock()
    repository.list_for_user = AsyncMock(return_value=notifications or [])
    repository.mark_read = AsyncMock()
    repository.mark_all_read = AsyncMock()
    repository.delete = AsyncMock()

    async def create(data):
        return Notification(id="n-new", **data)

    repository.create = AsyncMock(side_effect=create)
    return repository


@pytest.fixture
def repository():
    return create_mock_repository(
        [make_notification("n-1"), make_notification("n-2", read=True), make_notification("n-3")]
    )


@pytest.fixture
def service(repository, settings):
    return NotificationService(repository, settings)


class TestNotificationService:
    def test_implements_notifier(self, service):
        assert isinstance(service, INotifier)

    @pytest.mark.asyncio
    async def test_load(self, service, repository, settings):
        notifications = await service.load("guest-1")

        assert len(notifications) == 3
        assert service.unread_count == 2
        repository.list_for_user.assert_awaited_once_with("guest-1", settings.notification_limit)

    @pytest.mark.asyncio
    async def test_load_without_user(self, service, repository):
        await service.load("guest-1")

        assert await service.load(None) == []
        assert service.unread_count == 0
        assert repository.list_for_user.await_count == 1

    @pytest.mark.asyncio
    async def test_mark_read(self, service):
        await service.load("guest-1")

        result = await service.mark_read("n-1")

        assert result.success is True
        assert service.unread_count == 1

    @pytest.mark.asyncio
    async def test_mark_all_read(self, service, repository):
        await service.load("guest-1")

        await service.mark_all_read()

        assert service.unread_count == 0
        repository.mark_all_read.assert_awaited_once_with("guest-1")

    @pytest.mark.asyncio
    async def test_delete(self, service):
        await service.load("guest-1")

        await service.delete("n-2")

        assert [n.id for n in service.state.notifications] == ["n-1", "n-3"]

    @pytest.mark.asyncio
    async def test_failure_keeps_state(self, service, repository):
        await service.load("guest-1")
        repository.delete.side_effect = ExternalServiceError("Gateway down", service="supabase")

        result = await service.delete("n-2")

        assert result.success is False
        assert len(service.state.notifications) == 3
        assert service.state.error == "Gateway down"

    @pytest.mark.asyncio
    async def test_notify_current_user_prepends(self, service):
        await service.load("guest-1")

        notification = await service.notify(
            "guest-1", NotificationType.NEW_MESSAGE, "New Message", "You have a new message."
        )

        assert notification.type == NotificationType.NEW_MESSAGE
        assert service.state.notifications[0].id == "n-new"
        assert service.unread_count == 3

    @pytest.mark.asyncio
    async def test_notify_other_user(self, service):
        await service.load("guest-1")

        await service.notify("host-1", NotificationType.BOOKING_REQUEST, "New Booking Request", "...")

        assert len(service.state.notifications) == 3

    @pytest.mark.asyncio
    async def test_notify_disabled(self, repository):
        settings = Settings(enable_notifications=False, cache_mirror_enabled=False, _env_file=None)
        service = NotificationService(repository, settings)

        assert await service.notify("host-1", NotificationType.WELCOME, "Welcome", "Hi") is None
        repository.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_notify_errors_propagate(self, service, repository):
        """Callers decide whether a failed notification matters."""
        repository.create.side_effect = ExternalServiceError("insert failed", service="supabase")

        with pytest.raises(ExternalServiceError):
            await service.notify("host-1", NotificationType.WELCOME, "Welcome", "Hi")


class TestNotificationRepository:
    @pytest.mark.asyncio
    async def test_mark_all_read_only_touches_unread(self):
        db = MagicMock()
        query = MagicMock()
        query.update.return_value = query
        query.eq.return_value = query
        query.execute = AsyncMock(return_value=MagicMock(data=[]))
        db.table.return_value = query

        await NotificationRepository(db).mark_all_read("guest-1")

        query.update.assert_called_once_with({"read": True})
        query.eq.assert_any_call("user_id", "guest-1")
        query.eq.assert_any_call("read", False)
