"""
Booking repository for database access.

Bookings are always read with their experience (and its host) and the
guest profile embedded.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from shared.repository import BaseRepository

from .models import Booking, BookingStatus


GUEST_COLUMNS = "*, experiences (*, profiles (*)), profiles (*)"

# The inner join drops bookings whose experience belongs to another host
HOST_COLUMNS = "*, experiences!inner (*, profiles (*)), profiles (*)"


class BookingRepository(BaseRepository[Booking]):
    """
    Repository for booking data access.

    Note: This repository does NOT perform authorization checks.
    """

    async def list_for_guest(self, guest_id: str) -> list[Booking]:
        rows = await self._execute(
            self._db.table("bookings")
            .select(GUEST_COLUMNS)
            .eq("guest_id", guest_id)
            .order("created_at", desc=True),
            "fetch bookings",
        )
        return [self._map_to_booking(row) for row in rows]

    async def list_for_host(self, host_id: str) -> list[Booking]:
        """Bookings for any experience owned by `host_id`, newest first."""
        rows = await self._execute(
            self._db.table("bookings")
            .select(HOST_COLUMNS)
            .eq("experiences.host_id", host_id)
            .order("created_at", desc=True),
            "fetch bookings",
        )
        return [self._map_to_booking(row) for row in rows]

    async def get_by_id(self, booking_id: str) -> Optional[Booking]:
        rows = await self._execute(
            self._db.table("bookings").select(GUEST_COLUMNS).eq("id", booking_id).limit(1),
            "fetch booking",
        )
        if not rows:
            return None
        return self._map_to_booking(rows[0])

    async def create(self, data: dict[str, Any]) -> Booking:
        row = {**data, "status": BookingStatus.PENDING.value}
        rows = await self._execute(
            self._db.table("bookings").insert(row),
            "create booking",
        )
        return self._map_to_booking(rows[0])

    async def update_status(self, booking_id: str, status: BookingStatus) -> Optional[Booking]:
        """
        Move a pending booking to `status`.

        The update only matches a row that is still pending, so a booking
        that already left that state is never touched.

        Returns:
            The stored row, or None if no pending row matched.
        """
        rows = await self._execute(
            self._db.table("bookings")
            .update({"status": status.value, "updated_at": datetime.now(timezone.utc).isoformat()})
            .eq("id", booking_id)
            .eq("status", BookingStatus.PENDING.value),
            "update booking",
        )
        if not rows:
            return None
        return self._map_to_booking(rows[0])

    def _map_to_booking(self, data: dict[str, Any]) -> Booking:
        return Booking.model_validate(data)
