"""
Observable state holder.

Services keep their reactive state in an immutable pydantic model. Every
change produces a new model via model_copy(); listeners are told about the
new value after it has been stored.
"""

import logging
from typing import Callable, Generic, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)


S = TypeVar("S", bound=BaseModel)

StateListener = Callable[[S], None]


class StateStore(Generic[S]):
    """Holds the current state of a service and notifies listeners."""

    def __init__(self, initial: S):
        self._state = initial
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> S:
        return self._state

    def update(self, **changes) -> S:
        """Replace the state with a copy carrying the given field changes."""
        self._state = self._state.model_copy(update=changes)
        self._notify()
        return self._state

    def reset(self, state: S) -> S:
        self._state = state
        self._notify()
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener for state changes.

        Returns:
            Callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                # Listener failures never reach the producer
                logger.exception("State listener raised")
