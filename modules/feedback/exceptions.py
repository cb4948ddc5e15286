"""
Feedback module exceptions.
"""

from shared.exceptions import AuthorizationError, ConflictError, ValidationError


class FeedbackAlreadySubmittedError(ConflictError):
    """Raised when a booking already has feedback."""

    def __init__(self, booking_id: str):
        super().__init__(
            "You have already left feedback for this booking",
            code="FEEDBACK_ALREADY_SUBMITTED",
            details={"booking_id": booking_id},
        )


class FeedbackNotAllowedError(AuthorizationError):
    """Raised when the booking is not the guest's own."""

    def __init__(self, booking_id: str, profile_id: str):
        super().__init__(
            "Only the guest of this booking can leave feedback",
            code="FEEDBACK_NOT_ALLOWED",
            details={"booking_id": booking_id, "profile_id": profile_id},
        )


class BookingNotConfirmedError(ValidationError):
    """Raised when rating a booking that was never confirmed."""

    def __init__(self, booking_id: str, status: str):
        super().__init__(
            "Feedback can only be left for confirmed bookings",
            code="BOOKING_NOT_CONFIRMED",
            details={"booking_id": booking_id, "status": status},
        )
