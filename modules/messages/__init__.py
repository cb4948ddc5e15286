"""
Messages module - per-booking chat with live updates.

Public interface:
- MessageChannel: History, send and realtime inserts for one booking
- IMessageRepository: Message persistence
- Message, MessageFeedState: Data models
"""

from .channel import MessageChannel
from .interfaces import IMessageRepository
from .models import Message, MessageFeedState
from .exceptions import EmptyMessageError, NoActiveBookingError

__all__ = [
    "MessageChannel",
    "IMessageRepository",
    "Message",
    "MessageFeedState",
    "EmptyMessageError",
    "NoActiveBookingError",
]
