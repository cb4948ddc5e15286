"""
Feedback module - guest ratings of experiences.
"""

from .interfaces import IFeedbackRepository
from .models import Feedback, FeedbackCreate, FeedbackState
from .exceptions import (
    BookingNotConfirmedError,
    FeedbackAlreadySubmittedError,
    FeedbackNotAllowedError,
)

__all__ = [
    "IFeedbackRepository",
    "Feedback",
    "FeedbackCreate",
    "FeedbackState",
    "BookingNotConfirmedError",
    "FeedbackAlreadySubmittedError",
    "FeedbackNotAllowedError",
]
