"""
Bookings module - guest booking requests and host confirm/decline.

Public interface:
- IBookingRepository: Booking persistence
- Booking, BookingStatus, BookingsState: Data models
"""

from .interfaces import IBookingRepository
from .models import Booking, BookingRequest, BookingsState, BookingStatus, GuestSummary
from .exceptions import (
    BookingAccessDeniedError,
    BookingNotFoundError,
    InvalidBookingTransitionError,
)

__all__ = [
    "IBookingRepository",
    "Booking",
    "BookingRequest",
    "BookingsState",
    "BookingStatus",
    "GuestSummary",
    "BookingAccessDeniedError",
    "BookingNotFoundError",
    "InvalidBookingTransitionError",
]
