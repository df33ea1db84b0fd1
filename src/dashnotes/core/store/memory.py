"""In-process store for development and testing."""

import copy
from typing import Any

from dashnotes.core.store.base import Store
from dashnotes.core.store.schema import Migration
from dashnotes.core.store.types import Row
from dashnotes.utils import now


class MemoryStore(Store):
    """Keeps every table in a dict keyed by row id. Not shared between processes."""

    def __init__(self) -> None:
        super().__init__()
        self._tables: dict[str, dict[Any, Row]] = {}
        self._migrations: list[dict[str, Any]] = []

    async def _load_applied(self) -> list[str]:
        return [record["name"] for record in self._migrations]

    async def _apply_migration(self, migration: Migration) -> None:
        for table in migration.tables:
            self._tables.setdefault(table, {})
        self._migrations.append({"name": migration.name, "applied_at": now()})

    async def _select(
        self, table: str, where: dict[str, Any], order_by: str | None, descending: bool, limit: int | None
    ) -> list[Row]:
        rows = [row for row in self._tables.get(table, {}).values() if self.matches(row, where)]
        if order_by:
            # Rows without a value sort last regardless of direction
            present = [row for row in rows if row.get(order_by) is not None]
            missing = [row for row in rows if row.get(order_by) is None]
            present.sort(key=lambda row: row[order_by], reverse=descending)
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def _insert(self, table: str, row: Row) -> None:
        self._tables.setdefault(table, {})[row["id"]] = copy.deepcopy(row)

    async def _update(self, table: str, ids: list[Any], values: dict[str, Any]) -> None:
        rows = self._tables.get(table, {})
        for row_id in ids:
            if row_id in rows:
                rows[row_id].update(copy.deepcopy(values))

    async def _delete(self, table: str, ids: list[Any]) -> None:
        rows = self._tables.get(table, {})
        for row_id in ids:
            rows.pop(row_id, None)

    async def _count(self, table: str, where: dict[str, Any]) -> int:
        return sum(1 for row in self._tables.get(table, {}).values() if self.matches(row, where))
