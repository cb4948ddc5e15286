"""
Stats repository.

Only the columns the counters need are fetched.
"""

from typing import Any

from shared.repository import BaseRepository

from .models import HostStats


class StatsRepository(BaseRepository[HostStats]):
    """Narrow reads over experiences and bookings for one host."""

    async def experience_flags(self, host_id: str) -> list[dict[str, Any]]:
        """Rows of `{id, published}` for every experience the host owns."""
        return await self._execute(
            self._db.table("experiences").select("id, published").eq("host_id", host_id),
            "fetch experience stats",
        )

    async def booking_statuses(self, host_id: str) -> list[dict[str, Any]]:
        """Rows of `{id, status}` for bookings on the host's experiences."""
        return await self._execute(
            self._db.table("bookings")
            .select("id, status, experiences!inner(host_id)")
            .eq("experiences.host_id", host_id),
            "fetch booking stats",
        )
