"""
Bookings module interfaces.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .models import Booking, BookingStatus


@runtime_checkable
class IBookingRepository(Protocol):
    """Interface for booking persistence."""

    async def list_for_guest(self, guest_id: str) -> list[Booking]:
        ...

    async def list_for_host(self, host_id: str) -> list[Booking]:
        ...

    async def get_by_id(self, booking_id: str) -> Optional[Booking]:
        ...

    async def create(self, data: dict[str, Any]) -> Booking:
        ...

    async def update_status(self, booking_id: str, status: BookingStatus) -> Optional[Booking]:
        """Conditional on the row still being pending; None if it was not."""
        ...
