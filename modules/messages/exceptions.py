"""
Messages module exceptions.
"""

from shared.exceptions import ValidationError


class EmptyMessageError(ValidationError):
    """Raised when a message body is empty or whitespace."""

    def __init__(self):
        super().__init__("Message cannot be empty", code="EMPTY_MESSAGE")


class NoActiveBookingError(ValidationError):
    """Raised when sending without a booking or a sender profile."""

    def __init__(self):
        super().__init__(
            "Select a booking before sending a message",
            code="NO_ACTIVE_BOOKING",
        )
