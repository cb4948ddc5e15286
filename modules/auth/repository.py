"""
Profile repository for database access.

Encapsulates Supabase queries and data mapping for the profiles table.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from shared.repository import BaseRepository

from .models import Profile


class ProfileRepository(BaseRepository[Profile]):
    """
    Repository for profile data access.

    Note: This repository does NOT perform authorization checks.
    Row Level Security in the Gateway is the source of truth.
    """

    async def get_by_auth_uid(self, auth_uid: str) -> Optional[Profile]:
        rows = await self._execute(
            self._db.table("profiles").select("*").eq("auth_uid", auth_uid).limit(1),
            "load profile",
        )
        if not rows:
            return None
        return self._map_to_profile(rows[0])

    async def get_by_id(self, profile_id: str) -> Optional[Profile]:
        rows = await self._execute(
            self._db.table("profiles").select("*").eq("id", profile_id).limit(1),
            "load profile",
        )
        if not rows:
            return None
        return self._map_to_profile(rows[0])

    async def create(self, data: dict[str, Any]) -> Profile:
        """
        Insert a profile row.

        Args:
            data: Column values; timestamps are filled in when missing.

        Returns:
            The stored profile.
        """
        now = datetime.now(timezone.utc).isoformat()
        row = {"created_at": now, "updated_at": now, **data}
        rows = await self._execute(
            self._db.table("profiles").insert(row),
            "create profile",
        )
        return self._map_to_profile(rows[0])

    async def update(self, profile_id: str, changes: dict[str, Any]) -> Optional[Profile]:
        """
        Apply a partial update.

        Returns:
            The row as stored by the Gateway, or None if no row matched.
        """
        data = {**changes, "updated_at": datetime.now(timezone.utc).isoformat()}
        rows = await self._execute(
            self._db.table("profiles").update(data).eq("id", profile_id),
            "update profile",
        )
        if not rows:
            return None
        return self._map_to_profile(rows[0])

    def _map_to_profile(self, data: dict[str, Any]) -> Profile:
        return Profile.model_validate(data)
