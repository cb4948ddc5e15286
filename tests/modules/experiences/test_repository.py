import pytest
from unittest.mock import AsyncMock, MagicMock

from modules.experiences.repository import DETAIL_COLUMNS, LIST_COLUMNS, ExperienceRepository


EXPERIENCE_ROW = {
    "id": "exp-1",
    "host_id": "host-1",
    "title": "Medina walk",
    "description": "Old town tour",
    "city": "Marrakech",
    "price": "25 EUR",
    "contact_method": "whatsapp",
    "published": True,
    "created_at": "2026-01-01T12:00:00+00:00",
    "profiles": {"id": "host-1", "full_name": "Youssef Benali", "verified": True},
}


def make_db(rows):
    db = MagicMock()
    query = MagicMock()
    for method in ("select", "eq", "order", "range", "limit", "insert", "update", "delete"):
        getattr(query, method).return_value = query
    query.execute = AsyncMock(return_value=MagicMock(data=rows))
    db.table.return_value = query
    return db, query


class TestExperienceRepository:
    @pytest.mark.asyncio
    async def test_list_published(self):
        """Should select the list projection, published only, newest first."""
        db, query = make_db([EXPERIENCE_ROW])

        experiences = await ExperienceRepository(db).list_published(12)

        assert experiences[0].host.full_name == "Youssef Benali"
        query.select.assert_called_once_with(LIST_COLUMNS)
        query.eq.assert_called_once_with("published", True)
        query.order.assert_called_once_with("created_at", desc=True)
        query.range.assert_called_once_with(0, 11)

    @pytest.mark.asyncio
    async def test_get_by_id(self):
        db, query = make_db([EXPERIENCE_ROW])

        experience = await ExperienceRepository(db).get_by_id("exp-1")

        assert experience.id == "exp-1"
        query.select.assert_called_once_with(DETAIL_COLUMNS)

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self):
        db, _ = make_db([])
        assert await ExperienceRepository(db).get_by_id("nope") is None

    @pytest.mark.asyncio
    async def test_create_sets_owner(self):
        db, query = make_db([EXPERIENCE_ROW])

        await ExperienceRepository(db).create("host-1", {"title": "Medina walk"})

        row = query.insert.call_args.args[0]
        assert row["host_id"] == "host-1"
        assert "created_at" in row

    @pytest.mark.asyncio
    async def test_delete_reports_removal(self):
        db, _ = make_db([EXPERIENCE_ROW])
        assert await ExperienceRepository(db).delete("exp-1") is True

        db, _ = make_db([])
        assert await ExperienceRepository(db).delete("exp-1") is False
