"""
Per-booking message channel.

A channel shows the messages of one booking at a time. While a booking is
active it holds a realtime subscription to inserts on the messages table
filtered to that booking, and appends each new row to local state.

Every message, whether it came from history, from a send() response or
from the realtime feed, goes through _apply(), which drops ids it has
already seen and inserts in created_at order. A message sent from this
channel is therefore shown once even though the realtime feed echoes it.
"""

import bisect
import logging
import threading
from typing import Any, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from shared.exceptions import GuideError
from shared.models import MutationResult
from shared.realtime import InsertHandler, IRealtimeFeed, RealtimeSubscription
from shared.state import StateStore

from .exceptions import EmptyMessageError, NoActiveBookingError
from .interfaces import IMessageRepository
from .models import Message, MessageFeedState

logger = logging.getLogger(__name__)


class MessageChannel:
    """
    Message history plus live inserts for the active booking.

    Usage:
        async with MessageChannel(repo, feed, viewer_id, booking_id) as channel:
            await channel.send("Hello")
            await channel.set_booking(other_booking_id)
    """

    def __init__(
        self,
        repository: IMessageRepository,
        realtime: IRealtimeFeed,
        viewer_profile_id: Optional[str],
        booking_id: Optional[str] = None,
    ):
        self._repository = repository
        self._realtime = realtime
        self._viewer_profile_id = viewer_profile_id
        self._store: StateStore[MessageFeedState] = StateStore(
            MessageFeedState(booking_id=booking_id)
        )
        self._subscription: Optional[RealtimeSubscription] = None
        self._seen: set[str] = set()
        self._lock = threading.RLock()
        # Bumped on every booking switch; work from an older generation is dropped
        self._generation = 0
        self._closed = False

    @property
    def state(self) -> MessageFeedState:
        return self._store.state

    @property
    def booking_id(self) -> Optional[str]:
        return self.state.booking_id

    @property
    def messages(self) -> list[Message]:
        return self.state.messages

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Callable[[MessageFeedState], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    async def __aenter__(self) -> "MessageChannel":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def open(self) -> None:
        """Subscribe to the current booking and load its history."""
        await self._activate(self.state.booking_id)

    async def set_booking(self, booking_id: Optional[str]) -> None:
        """
        Switch to another booking.

        The old subscription is torn down and local messages are replaced
        by the new booking's history.
        """
        if booking_id == self.state.booking_id and self._subscription is not None:
            return
        await self._activate(booking_id)

    async def close(self) -> None:
        """Tear the subscription down. Later results are discarded."""
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        await self._teardown()
        self._store.update(connected=False, loading=False)

    async def _activate(self, booking_id: Optional[str]) -> None:
        if self._closed:
            return
        self._generation += 1
        generation = self._generation
        await self._teardown()

        with self._lock:
            self._seen = set()
            self._store.reset(MessageFeedState(booking_id=booking_id))
        if not booking_id:
            return

        # Subscribe first so nothing inserted while history loads is missed
        try:
            subscription = await self._realtime.subscribe_inserts(
                "messages",
                "booking_id",
                booking_id,
                self._insert_handler(booking_id, generation),
            )
        except GuideError as e:
            logger.warning(f"Live updates unavailable for booking {booking_id}: {e.message}")
            if self._is_current(generation):
                self._store.update(error=e.message)
        else:
            if not self._is_current(generation):
                await subscription.unsubscribe()
                return
            self._subscription = subscription
            self._store.update(connected=True)

        await self._load(booking_id, generation)

    async def _teardown(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is None:
            return
        try:
            await subscription.unsubscribe()
        except GuideError as e:
            logger.warning(f"Failed to close realtime subscription: {e.message}")

    # -------------------------------------------------------------------------
    # History and sending
    # -------------------------------------------------------------------------

    async def load_history(self) -> list[Message]:
        """
        Fetch every message of the active booking, oldest first.

        On failure the error is exposed and the current messages are kept.
        """
        booking_id = self.state.booking_id
        if not booking_id or self._closed:
            return list(self.state.messages)
        self._store.update(error=None)
        return await self._load(booking_id, self._generation)

    async def _load(self, booking_id: str, generation: int) -> list[Message]:
        self._store.update(loading=True)
        try:
            history = await self._repository.list_for_booking(booking_id)
        except GuideError as e:
            logger.warning(f"Failed to load messages for booking {booking_id}: {e.message}")
            if self._is_current(generation):
                self._store.update(loading=False, error=e.message)
            return list(self.state.messages)

        if not self._is_current(generation):
            logger.debug(f"Discarding stale message history for booking {booking_id}")
            return list(self.state.messages)

        for message in history:
            self._apply(message)
        self._store.update(loading=False)
        return list(self.state.messages)

    async def send(self, body: str) -> MutationResult[Message]:
        """
        Send a message on the active booking.

        Blank bodies and a missing booking or sender are rejected without a
        network call. The message shows up once the Gateway has stored it.
        """
        text = body.strip() if body else ""
        if not text:
            return self._reject(EmptyMessageError())
        booking_id = self.state.booking_id
        if not booking_id or not self._viewer_profile_id:
            return self._reject(NoActiveBookingError())

        generation = self._generation
        try:
            message = await self._repository.create(booking_id, self._viewer_profile_id, text)
        except GuideError as e:
            return self._reject(e)

        if self._is_current(generation):
            self._apply(message)
        return MutationResult.ok(message)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def _insert_handler(self, booking_id: str, generation: int) -> InsertHandler:
        def on_insert(record: dict[str, Any]) -> None:
            if not self._is_current(generation):
                return
            try:
                message = Message.model_validate(record)
            except PydanticValidationError as e:
                logger.warning(f"Ignoring malformed message row on booking {booking_id}: {e}")
                return
            if message.booking_id != booking_id:
                logger.debug(f"Ignoring message {message.id} for booking {message.booking_id}")
                return
            self._apply(message)

        return on_insert

    def _apply(self, message: Message) -> bool:
        """
        Insert a message unless its id was already applied.

        Returns:
            True if the message was added.
        """
        with self._lock:
            if message.id in self._seen:
                return False
            self._seen.add(message.id)
            messages = list(self.state.messages)
            index = bisect.bisect_right(
                messages, message.created_at, key=lambda m: m.created_at
            )
            messages.insert(index, message)
            self._store.update(messages=messages)
            return True

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _reject(self, error: GuideError) -> MutationResult:
        logger.warning(f"Message not sent: {error.message}")
        return MutationResult.fail(error)
