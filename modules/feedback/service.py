"""
Feedback service.

Guests rate confirmed bookings they own; anyone can read an experience's
feedback and its average rating. The Gateway enforces one feedback per
booking.
"""

import logging
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from shared.exceptions import ConflictError, GuideError, ValidationError
from shared.models import MutationResult
from shared.state import StateStore

from modules.auth.exceptions import NotSignedInError
from modules.auth.models import Profile
from modules.bookings.models import Booking, BookingStatus
from modules.notifications.interfaces import INotifier
from modules.notifications.models import NotificationType

from .exceptions import (
    BookingNotConfirmedError,
    FeedbackAlreadySubmittedError,
    FeedbackNotAllowedError,
)
from .interfaces import IFeedbackRepository
from .models import Feedback, FeedbackCreate, FeedbackState

logger = logging.getLogger(__name__)


class FeedbackService:
    """Feedback for one experience at a time, plus submission."""

    def __init__(
        self,
        repository: IFeedbackRepository,
        notifier: Optional[INotifier] = None,
    ):
        self._repository = repository
        self._notifier = notifier
        self._store: StateStore[FeedbackState] = StateStore(FeedbackState())

    @property
    def state(self) -> FeedbackState:
        return self._store.state

    @property
    def average_rating(self) -> Optional[float]:
        return self.state.average_rating

    def subscribe(self, listener: Callable[[FeedbackState], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    async def load(self, experience_id: str) -> list[Feedback]:
        if experience_id != self.state.experience_id:
            self._store.reset(FeedbackState(experience_id=experience_id))
        self._store.update(loading=True, error=None)
        try:
            feedback = await self._repository.list_for_experience(experience_id)
        except GuideError as e:
            logger.error(f"Error fetching feedback for {experience_id}: {e.message}")
            self._store.update(loading=False, error=e.message)
            return list(self.state.feedback)
        self._store.update(feedback=feedback, loading=False, error=None)
        return feedback

    async def submit(
        self,
        profile: Optional[Profile],
        booking: Booking,
        rating: int,
        comment: Optional[str] = None,
    ) -> MutationResult[Feedback]:
        if profile is None:
            return self._fail(NotSignedInError("User not authenticated. Please sign in again."))
        if booking.guest_id != profile.id:
            return self._fail(FeedbackNotAllowedError(booking.id, profile.id))
        if booking.status != BookingStatus.CONFIRMED:
            return self._fail(BookingNotConfirmedError(booking.id, booking.status.value))
        if booking.host_id is None:
            return self._fail(
                ValidationError("Booking is missing its experience", code="INVALID_FEEDBACK")
            )
        try:
            request = FeedbackCreate(rating=rating, comment=(comment or "").strip() or None)
        except PydanticValidationError:
            return self._fail(ValidationError("Please select a rating", code="INVALID_RATING"))

        try:
            feedback = await self._repository.create(
                {
                    "booking_id": booking.id,
                    "experience_id": booking.experience_id,
                    "guest_id": profile.id,
                    "host_id": booking.host_id,
                    **request.model_dump(),
                }
            )
        except ConflictError:
            return self._fail(FeedbackAlreadySubmittedError(booking.id))
        except GuideError as e:
            return self._fail(e)

        if self.state.experience_id == booking.experience_id:
            self._store.update(feedback=[feedback, *self.state.feedback], error=None)

        if self._notifier is not None:
            try:
                await self._notifier.notify(
                    booking.host_id,
                    NotificationType.NEW_FEEDBACK,
                    "New Feedback",
                    f"{profile.full_name} rated your experience {feedback.rating}/5.",
                    {"booking_id": booking.id, "experience_id": booking.experience_id},
                )
            except GuideError as e:
                logger.error(f"Error creating feedback notification: {e.message}")
        return MutationResult.ok(feedback)

    async def reviewed_bookings(self, booking_ids: list[str]) -> set[str]:
        """Which of `booking_ids` already have feedback. Failures yield none."""
        try:
            return await self._repository.booking_ids_with_feedback(booking_ids)
        except GuideError as e:
            logger.warning(f"Failed to check existing feedback: {e.message}")
            return set()

    def _fail(self, error: GuideError) -> MutationResult:
        logger.warning(f"Feedback not submitted: {error.message}")
        return MutationResult.fail(error)
