"""
Stats module interfaces.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IStatsRepository(Protocol):
    """Interface for the two reads host stats are derived from."""

    async def experience_flags(self, host_id: str) -> list[dict[str, Any]]:
        ...

    async def booking_statuses(self, host_id: str) -> list[dict[str, Any]]:
        ...
