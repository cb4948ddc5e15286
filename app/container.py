"""
Service container for the Guide data layer.

This module wires together all module implementations. Each module exposes
its behaviour through a service object built on Protocol-typed
collaborators, and this file creates the concrete Supabase-backed
implementations.

One container is built per application. It owns the single TTLCache
every caching service shares, so sign-out clears everything at once.
"""

import logging
from typing import TYPE_CHECKING, Optional

from shared.cache import JsonFileMirror, TTLCache
from shared.config import Settings, get_settings
from shared.database import get_supabase_client

# Type checking imports (avoids importing every module at startup)
if TYPE_CHECKING:
    from supabase import AsyncClient

    from modules.auth.service import SessionManager
    from modules.bookings.service import BookingService
    from modules.experiences.images import ExperienceImageService
    from modules.experiences.repository import ExperienceRepository
    from modules.experiences.service import CatalogService, HostExperienceService
    from modules.feedback.service import FeedbackService
    from modules.messages.channel import MessageChannel
    from modules.notifications.service import NotificationService
    from modules.stats.service import StatsService
    from shared.realtime import SupabaseRealtimeFeed

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached as singletons
    within the container. Message channels are the exception: each view
    of a booking opens its own, see message_channel().
    """

    def __init__(
        self,
        db: "AsyncClient",
        settings: Optional[Settings] = None,
        cache: Optional[TTLCache] = None,
    ) -> None:
        self._db = db
        self._settings = settings or get_settings()
        self._cache = cache
        self._session: Optional["SessionManager"] = None
        self._experience_repository: Optional["ExperienceRepository"] = None
        self._catalog: Optional["CatalogService"] = None
        self._host_experiences: Optional["HostExperienceService"] = None
        self._images: Optional["ExperienceImageService"] = None
        self._notifications: Optional["NotificationService"] = None
        self._bookings: Optional["BookingService"] = None
        self._feedback: Optional["FeedbackService"] = None
        self._stats: Optional["StatsService"] = None
        self._realtime: Optional["SupabaseRealtimeFeed"] = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def cache(self) -> TTLCache:
        """The application-wide cache, mirrored to disk when enabled."""
        if self._cache is None:
            mirror = None
            if self._settings.cache_mirror_enabled:
                mirror = JsonFileMirror(self._settings.cache_mirror_dir)
            self._cache = TTLCache(mirror=mirror)
        return self._cache

    @property
    def session(self) -> "SessionManager":
        """Get the session manager. Call start() on it before use."""
        if self._session is None:
            from modules.auth.provider import SupabaseAuthProvider
            from modules.auth.repository import ProfileRepository
            from modules.auth.service import SessionManager
            self._session = SessionManager(
                auth=SupabaseAuthProvider(self._db),
                profiles=ProfileRepository(self._db),
                cache=self.cache,
                settings=self._settings,
            )
        return self._session

    @property
    def experience_repository(self) -> "ExperienceRepository":
        if self._experience_repository is None:
            from modules.experiences.repository import ExperienceRepository
            self._experience_repository = ExperienceRepository(self._db)
        return self._experience_repository

    @property
    def catalog(self) -> "CatalogService":
        """Get the published-experience catalog."""
        if self._catalog is None:
            from modules.experiences.service import CatalogService
            self._catalog = CatalogService(
                repository=self.experience_repository,
                cache=self.cache,
                settings=self._settings,
            )
        return self._catalog

    @property
    def host_experiences(self) -> "HostExperienceService":
        if self._host_experiences is None:
            from modules.experiences.service import HostExperienceService
            self._host_experiences = HostExperienceService(
                repository=self.experience_repository,
                catalog=self.catalog,
            )
        return self._host_experiences

    @property
    def images(self) -> "ExperienceImageService":
        if self._images is None:
            from modules.experiences.images import ExperienceImageService
            from shared.storage import SupabaseObjectStore
            self._images = ExperienceImageService(
                store=SupabaseObjectStore(self._db),
                settings=self._settings,
            )
        return self._images

    @property
    def notifications(self) -> "NotificationService":
        if self._notifications is None:
            from modules.notifications.repository import NotificationRepository
            from modules.notifications.service import NotificationService
            self._notifications = NotificationService(
                repository=NotificationRepository(self._db),
                settings=self._settings,
            )
        return self._notifications

    @property
    def bookings(self) -> "BookingService":
        if self._bookings is None:
            from modules.bookings.repository import BookingRepository
            from modules.bookings.service import BookingService
            self._bookings = BookingService(
                repository=BookingRepository(self._db),
                notifier=self.notifications,
            )
        return self._bookings

    @property
    def feedback(self) -> "FeedbackService":
        if self._feedback is None:
            from modules.feedback.repository import FeedbackRepository
            from modules.feedback.service import FeedbackService
            self._feedback = FeedbackService(
                repository=FeedbackRepository(self._db),
                notifier=self.notifications,
            )
        return self._feedback

    @property
    def stats(self) -> "StatsService":
        if self._stats is None:
            from modules.stats.repository import StatsRepository
            from modules.stats.service import StatsService
            self._stats = StatsService(repository=StatsRepository(self._db))
        return self._stats

    @property
    def realtime(self) -> "SupabaseRealtimeFeed":
        if self._realtime is None:
            from shared.realtime import SupabaseRealtimeFeed
            self._realtime = SupabaseRealtimeFeed(self._db)
        return self._realtime

    def message_channel(
        self,
        booking_id: Optional[str],
        viewer_profile_id: Optional[str],
    ) -> "MessageChannel":
        """
        Build a message channel for one booking view.

        The caller owns it: use it as an async context manager, or call
        open() and close().
        """
        from modules.messages.channel import MessageChannel
        from modules.messages.repository import MessageRepository
        return MessageChannel(
            repository=MessageRepository(self._db),
            realtime=self.realtime,
            viewer_profile_id=viewer_profile_id,
            booking_id=booking_id,
        )

    async def close(self) -> None:
        """Close long-lived services that hold subscriptions or tasks."""
        if self._session is not None:
            await self._session.close()

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._session = None
        self._experience_repository = None
        self._catalog = None
        self._host_experiences = None
        self._images = None
        self._notifications = None
        self._bookings = None
        self._feedback = None
        self._stats = None
        self._realtime = None


# Module-level container singleton
_container: Optional[ServiceContainer] = None


async def get_container() -> ServiceContainer:
    """Get the singleton service container, connecting on first use."""
    global _container
    if _container is None:
        _container = ServiceContainer(await get_supabase_client())
        logger.info("Service container created")
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    The next call to get_container() creates a fresh container with new
    service instances. Primarily used for testing.
    """
    global _container
    _container = None
