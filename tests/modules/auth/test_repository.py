import pytest
from unittest.mock import AsyncMock, MagicMock

from modules.auth.repository import ProfileRepository


def make_db(rows):
    """A client whose every query chain resolves to `rows`."""
    db = MagicMock()
    query = MagicMock()
    for method in ("select", "eq", "limit", "insert", "update"):
        getattr(query, method).return_value = query
    query.execute = AsyncMock(return_value=MagicMock(data=rows))
    db.table.return_value = query
    return db, query


PROFILE_ROW = {
    "id": "profile-1",
    "auth_uid": "u-1",
    "full_name": "Amina Haddad",
    "role": "guest",
    "city": "Rabat",
    "verified": False,
}


class TestProfileRepository:
    @pytest.mark.asyncio
    async def test_get_by_auth_uid(self):
        db, query = make_db([PROFILE_ROW])

        profile = await ProfileRepository(db).get_by_auth_uid("u-1")

        assert profile.id == "profile-1"
        db.table.assert_called_with("profiles")
        query.eq.assert_called_with("auth_uid", "u-1")

    @pytest.mark.asyncio
    async def test_get_by_auth_uid_missing(self):
        db, _ = make_db([])
        assert await ProfileRepository(db).get_by_auth_uid("u-1") is None

    @pytest.mark.asyncio
    async def test_create_fills_timestamps(self):
        """Should add timestamps to the inserted row."""
        db, query = make_db([PROFILE_ROW])

        profile = await ProfileRepository(db).create({"auth_uid": "u-1", "full_name": "Amina"})

        assert profile.auth_uid == "u-1"
        row = query.insert.call_args.args[0]
        assert "created_at" in row and "updated_at" in row

    @pytest.mark.asyncio
    async def test_update_returns_stored_row(self):
        db, query = make_db([{**PROFILE_ROW, "city": "Fes"}])

        profile = await ProfileRepository(db).update("profile-1", {"city": "Fes"})

        assert profile.city == "Fes"
        query.eq.assert_called_with("id", "profile-1")
        assert query.update.call_args.args[0]["city"] == "Fes"

    @pytest.mark.asyncio
    async def test_update_no_match(self):
        db, _ = make_db([])
        assert await ProfileRepository(db).update("missing", {"city": "Fes"}) is None
