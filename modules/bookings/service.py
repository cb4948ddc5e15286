"""
Booking service.

Loads the signed-in profile's bookings (a guest's own requests, or the
requests for a host's experiences), lets guests request a booking and
lets hosts confirm or decline one.

Status changes splice the row the Gateway returned into the loaded list;
there is no refetch and no cache involved.
"""

import logging
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from shared.exceptions import GuideError, ValidationError
from shared.models import MutationResult
from shared.state import StateStore

from modules.auth.exceptions import NotSignedInError
from modules.auth.models import Profile
from modules.experiences.models import Experience
from modules.notifications.interfaces import INotifier
from modules.notifications.models import NotificationType

from .exceptions import (
    BookingAccessDeniedError,
    BookingNotFoundError,
    InvalidBookingTransitionError,
)
from .interfaces import IBookingRepository
from .models import Booking, BookingRequest, BookingsState, BookingStatus

logger = logging.getLogger(__name__)


class BookingService:
    """Bookings visible to one profile, plus request/confirm/decline."""

    def __init__(
        self,
        repository: IBookingRepository,
        notifier: Optional[INotifier] = None,
    ):
        self._repository = repository
        self._notifier = notifier
        self._store: StateStore[BookingsState] = StateStore(BookingsState())
        self._profile: Optional[Profile] = None

    @property
    def state(self) -> BookingsState:
        return self._store.state

    def subscribe(self, listener: Callable[[BookingsState], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    async def load(self, profile: Optional[Profile]) -> list[Booking]:
        """
        Fetch bookings for `profile` according to its role.

        Guests see their own bookings; hosts see bookings for experiences
        they own. No profile empties the list without a round trip.
        """
        self._profile = profile
        if profile is None:
            self._store.reset(BookingsState())
            return []

        self._store.update(loading=True, error=None)
        try:
            if profile.is_host:
                bookings = await self._repository.list_for_host(profile.id)
            else:
                bookings = await self._repository.list_for_guest(profile.id)
        except GuideError as e:
            logger.warning(f"Failed to fetch bookings for {profile.id}: {e.message}")
            self._store.update(loading=False, error=e.message)
            return list(self.state.bookings)

        self._store.update(bookings=bookings, loading=False, error=None)
        return bookings

    async def refetch(self) -> list[Booking]:
        return await self.load(self._profile)

    def get(self, booking_id: str) -> Optional[Booking]:
        return next((b for b in self.state.bookings if b.id == booking_id), None)

    async def request(
        self,
        profile: Optional[Profile],
        experience: Experience,
        guest_message: Optional[str] = None,
    ) -> MutationResult[Booking]:
        """
        Request a booking for `experience` as a guest.

        The host is notified; a failed notification never fails the booking.
        """
        if profile is None:
            return self._fail(NotSignedInError("Please sign in to book experiences"))
        try:
            request = BookingRequest(
                experience_id=experience.id,
                guest_message=guest_message.strip() if guest_message else None,
            )
        except PydanticValidationError as e:
            return self._fail(ValidationError.from_pydantic(e, code="INVALID_BOOKING"))

        try:
            booking = await self._repository.create(
                {**request.model_dump(), "guest_id": profile.id}
            )
        except GuideError as e:
            return self._fail(e)

        if booking.experience is None:
            booking = booking.model_copy(update={"experience": experience})
        if self._profile is not None and self._profile.id == profile.id and not profile.is_host:
            self._store.update(bookings=[booking, *self.state.bookings], error=None)
        logger.info(f"Booking {booking.id} requested by {profile.id}")

        await self._notify(
            experience.host_id,
            NotificationType.BOOKING_REQUEST,
            "New Booking Request",
            f'{profile.full_name} has requested to book "{experience.title}".',
            {
                "booking_id": booking.id,
                "experience_id": experience.id,
                "guest_id": profile.id,
                "guest_name": profile.full_name,
            },
        )
        return MutationResult.ok(booking)

    async def confirm(self, booking_id: str) -> MutationResult[Booking]:
        return await self._transition(booking_id, BookingStatus.CONFIRMED)

    async def decline(self, booking_id: str) -> MutationResult[Booking]:
        return await self._transition(booking_id, BookingStatus.CANCELLED)

    async def _transition(self, booking_id: str, target: BookingStatus) -> MutationResult[Booking]:
        profile = self._profile
        if profile is None:
            return self._fail(NotSignedInError())
        booking = self.get(booking_id)
        if booking is None:
            return self._fail(BookingNotFoundError(booking_id))
        if not profile.is_host or (booking.host_id is not None and booking.host_id != profile.id):
            return self._fail(BookingAccessDeniedError(booking_id, profile.id))
        if not booking.status.can_transition_to(target):
            return self._fail(
                InvalidBookingTransitionError(booking_id, booking.status.value, target.value)
            )

        try:
            stored = await self._repository.update_status(booking_id, target)
        except GuideError as e:
            return self._fail(e)

        if stored is None:
            # Another writer moved it first; show what the Gateway holds now
            current = await self._reload(booking_id)
            status = current.status.value if current else "unavailable"
            return self._fail(InvalidBookingTransitionError(booking_id, status, target.value))

        updated = self._splice(booking, stored)
        logger.info(f"Booking {booking_id} {target.value} by host {profile.id}")

        if target == BookingStatus.CONFIRMED:
            kind, title, verb = NotificationType.BOOKING_CONFIRMED, "Booking Confirmed", "confirmed"
        else:
            kind, title, verb = NotificationType.BOOKING_CANCELLED, "Booking Declined", "declined"
        experience_title = booking.experience.title if booking.experience else "your experience"
        await self._notify(
            booking.guest_id,
            kind,
            title,
            f'Your booking for "{experience_title}" has been {verb}.',
            {"booking_id": booking_id, "experience_id": booking.experience_id},
        )
        return MutationResult.ok(updated)

    def _splice(self, local: Booking, stored: Booking) -> Booking:
        """Apply the stored status onto the loaded row, keeping its embeds."""
        updated = local.model_copy(
            update={"status": stored.status, "updated_at": stored.updated_at or local.updated_at}
        )
        self._store.update(
            bookings=[updated if b.id == local.id else b for b in self.state.bookings],
            error=None,
        )
        return updated

    async def _reload(self, booking_id: str) -> Optional[Booking]:
        try:
            current = await self._repository.get_by_id(booking_id)
        except GuideError as e:
            logger.warning(f"Failed to reload booking {booking_id}: {e.message}")
            return None
        local = self.get(booking_id)
        if current is not None and local is not None:
            self._splice(local, current)
        return current

    async def _notify(self, user_id: Optional[str], *args) -> None:
        if self._notifier is None or not user_id:
            return
        try:
            await self._notifier.notify(user_id, *args)
        except GuideError as e:
            logger.error(f"Error creating notification for {user_id}: {e.message}")

    def _fail(self, error: GuideError) -> MutationResult:
        logger.warning(f"Booking operation failed: {error.message}")
        self._store.update(error=error.message)
        return MutationResult.fail(error)
