"""
Experience repository for database access.

Encapsulates all Supabase queries and data mapping for the experiences
table and its embedded host profile.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from shared.repository import BaseRepository

from .models import Experience


# Projection used by the public catalog listing
LIST_COLUMNS = (
    "id, host_id, title, description, city, price, contact_method, published, "
    "image_url, image_alt_text, created_at, updated_at, "
    "profiles (id, full_name, verified)"
)

# Full projection used by single-item lookups
DETAIL_COLUMNS = "*, profiles (*)"


class ExperienceRepository(BaseRepository[Experience]):
    """
    Repository for experience data access.

    Note: This repository does NOT perform authorization checks.
    The service layer verifies host ownership; Row Level Security in the
    Gateway is the source of truth.
    """

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_published(self, limit: int) -> list[Experience]:
        """
        First page of published experiences, newest first.

        Args:
            limit: Page size.
        """
        rows = await self._execute(
            self._db.table("experiences")
            .select(LIST_COLUMNS)
            .eq("published", True)
            .order("created_at", desc=True)
            .range(0, limit - 1),
            "fetch experiences",
        )
        return [self._map_to_experience(row) for row in rows]

    async def get_by_id(self, experience_id: str) -> Optional[Experience]:
        rows = await self._execute(
            self._db.table("experiences")
            .select(DETAIL_COLUMNS)
            .eq("id", experience_id)
            .limit(1),
            "fetch experience",
        )
        if not rows:
            return None
        return self._map_to_experience(rows[0])

    async def list_by_host(self, host_id: str) -> list[Experience]:
        """All experiences owned by a host, published or not, newest first."""
        rows = await self._execute(
            self._db.table("experiences")
            .select("*")
            .eq("host_id", host_id)
            .order("created_at", desc=True),
            "fetch host experiences",
        )
        return [self._map_to_experience(row) for row in rows]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(self, host_id: str, data: dict[str, Any]) -> Experience:
        now = datetime.now(timezone.utc).isoformat()
        row = {**data, "host_id": host_id, "created_at": now, "updated_at": now}
        rows = await self._execute(
            self._db.table("experiences").insert(row),
            "create experience",
        )
        return self._map_to_experience(rows[0])

    async def update(self, experience_id: str, changes: dict[str, Any]) -> Optional[Experience]:
        """
        Apply a partial update.

        Returns:
            The stored row, or None if no row matched.
        """
        data = {**changes, "updated_at": datetime.now(timezone.utc).isoformat()}
        rows = await self._execute(
            self._db.table("experiences").update(data).eq("id", experience_id),
            "update experience",
        )
        if not rows:
            return None
        return self._map_to_experience(rows[0])

    async def delete(self, experience_id: str) -> bool:
        """
        Delete an experience.

        Returns:
            True if a row was removed.

        Note: Related bookings are handled by the Gateway's foreign keys.
        """
        rows = await self._execute(
            self._db.table("experiences").delete().eq("id", experience_id),
            "delete experience",
        )
        return bool(rows)

    def _map_to_experience(self, data: dict[str, Any]) -> Experience:
        return Experience.model_validate(data)
