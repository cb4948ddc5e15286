"""
Bookings module exceptions.
"""

from shared.exceptions import AuthorizationError, NotFoundError, ValidationError


class BookingNotFoundError(NotFoundError):
    """Raised when a booking is not in the loaded list or the Gateway."""

    def __init__(self, booking_id: str):
        super().__init__(
            f"Booking not found: {booking_id}",
            code="BOOKING_NOT_FOUND",
            details={"booking_id": booking_id},
        )


class InvalidBookingTransitionError(ValidationError):
    """Raised when a status change would leave the pending state machine."""

    def __init__(self, booking_id: str, current: str, target: str):
        super().__init__(
            f"Booking is already {current} and cannot be {target}",
            code="INVALID_BOOKING_TRANSITION",
            details={"booking_id": booking_id, "current": current, "target": target},
        )


class BookingAccessDeniedError(AuthorizationError):
    """Raised when someone other than the experience's host changes a booking."""

    def __init__(self, booking_id: str, profile_id: str):
        super().__init__(
            "Only the host of this experience can update the booking",
            code="BOOKING_ACCESS_DENIED",
            details={"booking_id": booking_id, "profile_id": profile_id},
        )
