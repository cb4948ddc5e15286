"""
Experiences module interfaces.

Other modules should depend on these protocols, not the concrete
implementations.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .models import CatalogState, Experience


@runtime_checkable
class IExperienceRepository(Protocol):
    """Interface for experience persistence."""

    async def list_published(self, limit: int) -> list[Experience]:
        ...

    async def get_by_id(self, experience_id: str) -> Optional[Experience]:
        ...

    async def list_by_host(self, host_id: str) -> list[Experience]:
        ...

    async def create(self, host_id: str, data: dict[str, Any]) -> Experience:
        ...

    async def update(self, experience_id: str, changes: dict[str, Any]) -> Optional[Experience]:
        ...

    async def delete(self, experience_id: str) -> bool:
        ...


@runtime_checkable
class ICatalogService(Protocol):
    """
    Interface for the published-experience read path.

    Reads never raise: failures are recorded in `state.error` and the
    last-known data is returned.
    """

    @property
    def state(self) -> CatalogState:
        ...

    async def list_experiences(self, force_refresh: bool = False) -> list[Experience]:
        """Published experiences, newest first, first page only."""
        ...

    def search_by_city(self, term: str) -> list[Experience]:
        """Case-insensitive city substring match over the loaded list."""
        ...

    def get_by_id(self, experience_id: str) -> Optional[Experience]:
        """Look an experience up in already-loaded data."""
        ...

    async def prefetch(self, experience_id: str) -> Optional[Experience]:
        """Fetch a single experience with its full host profile."""
        ...

    def invalidate(self) -> None:
        """Drop every catalog cache entry."""
        ...
