"""
Host stats service.

Counters are recomputed on every fetch; nothing is cached. A failed fetch
keeps the previous counters and records the error.
"""

import logging
from typing import Any, Callable, Optional

from shared.exceptions import GuideError
from shared.state import StateStore

from modules.auth.models import Profile

from .interfaces import IStatsRepository
from .models import HostStats, StatsState

logger = logging.getLogger(__name__)


def compute_stats(
    experiences: list[dict[str, Any]],
    bookings: list[dict[str, Any]],
) -> HostStats:
    """Reduce the two row sets into counters."""
    return HostStats(
        total_experiences=len(experiences),
        published_experiences=sum(1 for row in experiences if row.get("published")),
        total_bookings=len(bookings),
        pending_bookings=sum(1 for row in bookings if row.get("status") == "pending"),
    )


class StatsService:
    """Experience and booking counters for a host profile."""

    def __init__(self, repository: IStatsRepository):
        self._repository = repository
        self._store: StateStore[StatsState] = StateStore(StatsState())
        self._profile: Optional[Profile] = None

    @property
    def state(self) -> StatsState:
        return self._store.state

    @property
    def stats(self) -> HostStats:
        return self.state.stats

    def subscribe(self, listener: Callable[[StatsState], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    async def fetch(self, profile: Optional[Profile]) -> HostStats:
        self._profile = profile
        if profile is None:
            return self.stats

        self._store.update(loading=True, error=None)
        try:
            experiences = await self._repository.experience_flags(profile.id)
            bookings = await self._repository.booking_statuses(profile.id)
        except GuideError as e:
            logger.warning(f"Error fetching stats for {profile.id}: {e.message}")
            self._store.update(loading=False, error=e.message)
            return self.stats

        stats = compute_stats(experiences, bookings)
        self._store.update(stats=stats, loading=False, error=None)
        return stats

    async def refetch(self) -> HostStats:
        return await self.fetch(self._profile)
