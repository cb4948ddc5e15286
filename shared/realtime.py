"""
Row-insert subscriptions over Supabase Realtime.

The data layer only needs one realtime capability: be told about rows
inserted into a table where one column equals a value. A subscription is
a handle whose unsubscribe() tears the channel down.
"""

import logging
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from supabase import AsyncClient

from .exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


InsertHandler = Callable[[dict[str, Any]], None]


@runtime_checkable
class RealtimeSubscription(Protocol):
    """Handle for an open change feed."""

    async def unsubscribe(self) -> None:
        """Stop delivering events and release the channel."""
        ...


@runtime_checkable
class IRealtimeFeed(Protocol):
    """
    Interface for subscribing to inserted rows.

    Handlers are invoked synchronously on the event loop, once per inserted
    row, with the row as a plain dictionary.
    """

    async def subscribe_inserts(
        self,
        table: str,
        column: str,
        value: str,
        on_insert: InsertHandler,
    ) -> RealtimeSubscription:
        """
        Open a feed of rows inserted into `table` where `column = value`.

        Raises:
            ExternalServiceError: If the channel could not be joined.
        """
        ...


def extract_record(payload: Any) -> Optional[dict[str, Any]]:
    """
    Pull the inserted row out of a postgres_changes payload.

    Depending on the realtime client version the row sits under
    data.record, new or record.
    """
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get("record"), dict):
        return data["record"]
    for key in ("new", "record"):
        if isinstance(payload.get(key), dict):
            return payload[key]
    return None


class SupabaseSubscription:
    """A joined realtime channel."""

    def __init__(self, db: AsyncClient, channel: Any, topic: str):
        self._db = db
        self._channel = channel
        self._topic = topic
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    async def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        await self._db.remove_channel(self._channel)
        logger.info(f"Realtime channel closed: {self._topic}")


class SupabaseRealtimeFeed:
    """IRealtimeFeed backed by Supabase Realtime postgres_changes."""

    def __init__(self, db: AsyncClient, schema: str = "public"):
        self._db = db
        self._schema = schema

    async def subscribe_inserts(
        self,
        table: str,
        column: str,
        value: str,
        on_insert: InsertHandler,
    ) -> SupabaseSubscription:
        topic = f"{table}-{value}"

        def handle(payload: Any) -> None:
            record = extract_record(payload)
            if record is None:
                logger.warning(f"Ignoring realtime payload without a record on {topic}")
                return
            logger.debug(f"Realtime insert on {topic}: {record.get('id')}")
            on_insert(record)

        channel = self._db.channel(topic)
        channel.on_postgres_changes(
            "INSERT",
            callback=handle,
            table=table,
            schema=self._schema,
            filter=f"{column}=eq.{value}",
        )
        try:
            await channel.subscribe()
        except Exception as e:
            await self._db.remove_channel(channel)
            raise ExternalServiceError(
                f"Failed to subscribe to {table} changes: {e}",
                service="realtime",
                code="REALTIME_SUBSCRIBE_FAILED",
            )

        logger.info(f"Realtime channel opened: {topic}")
        return SupabaseSubscription(self._db, channel, topic)
