"""Tests for the in-memory store: row CRUD, filtering and schema checks."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from dashnotes.core.store import In, MemoryStore
from dashnotes.core.store.schema import NOTE_SHARES, NOTES, SESSIONS, USERS
from dashnotes.errors import MissingColumnError, MissingTableError

BASE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


def note_row(content: str, minutes: int, **extra: object) -> dict[str, object]:
    created = BASE_TIME + timedelta(minutes=minutes)
    return {
        "id": uuid4(),
        "title": None,
        "content": content,
        "created_by": uuid4(),
        "created_at": created,
        "updated_at": created,
        **extra,
    }


class TestRows:
    """Tests for select/insert/update/delete/count."""

    @pytest.mark.asyncio
    async def test_insert_assigns_id_when_missing(self, store: MemoryStore):
        row = await store.insert(SESSIONS, {"user_id": uuid4(), "auth_token": "t", "created_at": BASE_TIME})
        assert "id" in row
        assert await store.select(SESSIONS, {"id": row["id"]}) == [row]

    @pytest.mark.asyncio
    async def test_select_orders_and_limits(self, store: MemoryStore):
        for minutes, content in [(1, "first"), (3, "third"), (2, "second")]:
            await store.insert(NOTES, note_row(content, minutes))

        rows = await store.select(NOTES, order_by="created_at", descending=True, limit=2)
        assert [row["content"] for row in rows] == ["third", "second"]

        rows = await store.select(NOTES, order_by="created_at")
        assert [row["content"] for row in rows] == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_select_with_membership_filter(self, store: MemoryStore):
        rows = [await store.insert(NOTES, note_row(f"note {i}", i)) for i in range(3)]
        wanted = (rows[0]["id"], rows[2]["id"])

        selected = await store.select(NOTES, {"id": In(wanted)})
        assert {row["id"] for row in selected} == set(wanted)

    @pytest.mark.asyncio
    async def test_returned_rows_are_copies(self, store: MemoryStore):
        row = await store.insert(NOTES, note_row("original", 0))
        selected = (await store.select(NOTES, {"id": row["id"]}))[0]
        selected["content"] = "mutated"
        assert (await store.select(NOTES, {"id": row["id"]}))[0]["content"] == "original"

    @pytest.mark.asyncio
    async def test_update_returns_new_rows(self, store: MemoryStore):
        row = await store.insert(NOTES, note_row("before", 0))
        updated = await store.update(NOTES, {"id": row["id"]}, {"content": "after"})
        assert len(updated) == 1
        assert updated[0]["content"] == "after"
        assert updated[0]["created_by"] == row["created_by"]

    @pytest.mark.asyncio
    async def test_update_without_match_returns_empty(self, store: MemoryStore):
        assert await store.update(NOTES, {"id": uuid4()}, {"content": "x"}) == []

    @pytest.mark.asyncio
    async def test_delete_returns_removed_rows(self, store: MemoryStore):
        row = await store.insert(NOTES, note_row("gone", 0))
        removed = await store.delete(NOTES, {"id": row["id"]})
        assert [r["id"] for r in removed] == [row["id"]]
        assert await store.count(NOTES) == 0
        assert await store.delete(NOTES, {"id": row["id"]}) == []

    @pytest.mark.asyncio
    async def test_count_with_filter(self, store: MemoryStore):
        author = uuid4()
        await store.insert(NOTES, note_row("a", 0, created_by=author))
        await store.insert(NOTES, note_row("b", 1, created_by=author))
        await store.insert(NOTES, note_row("c", 2))
        assert await store.count(NOTES, {"created_by": author}) == 2


class TestSchemaChecks:
    """Tests that references outside the applied schema are rejected."""

    @pytest.mark.asyncio
    async def test_unmigrated_store_has_no_tables(self):
        store = MemoryStore()
        with pytest.raises(MissingTableError) as exc_info:
            await store.select(USERS)
        assert exc_info.value.table == USERS

    @pytest.mark.asyncio
    async def test_missing_table_on_degraded_schema(self, degraded_store: MemoryStore):
        with pytest.raises(MissingTableError):
            await degraded_store.select(NOTE_SHARES, {"note_id": uuid4()})

    @pytest.mark.asyncio
    async def test_missing_column_in_filter(self, degraded_store: MemoryStore):
        with pytest.raises(MissingColumnError) as exc_info:
            await degraded_store.select(NOTES, {"owner_role": "ceo"})
        assert exc_info.value.table == NOTES
        assert exc_info.value.column == "owner_role"

    @pytest.mark.asyncio
    async def test_missing_column_on_insert(self, degraded_store: MemoryStore):
        with pytest.raises(MissingColumnError):
            await degraded_store.insert(NOTES, note_row("x", 0, is_pinned=True))
        assert await degraded_store.count(NOTES) == 0

    @pytest.mark.asyncio
    async def test_missing_order_column(self, store: MemoryStore):
        with pytest.raises(MissingColumnError):
            await store.select(NOTES, order_by="priority")

    @pytest.mark.asyncio
    async def test_load_schema_reflects_applied_migrations(self, degraded_store: MemoryStore):
        assert not degraded_store.has_table(NOTE_SHARES)
        await degraded_store.migrate()
        schema = await degraded_store.load_schema()
        assert NOTE_SHARES in schema
        assert degraded_store.has_column(NOTES, "is_pinned")
