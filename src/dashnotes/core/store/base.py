from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Any
from uuid import UUID, uuid4

import structlog

from dashnotes.core.store.schema import Migration, Schema, build_schema, pending_migrations
from dashnotes.core.store.triggers import DEFAULT_TRIGGERS, Trigger
from dashnotes.core.store.types import ChangeCallback, In, Operation, Row, Subscription, TriggerEvent
from dashnotes.errors import MissingColumnError, MissingTableError, SchemaMissingError

logger = structlog.get_logger(__name__)


class Store(ABC):
    """Row-oriented persistence boundary with a schema, triggers and a change feed.

    Subclasses implement the raw ``_select/_insert/_update/_delete/_count``
    primitives. This class validates every call against the applied schema,
    runs store-side triggers after writes and publishes change signals.
    """

    def __init__(self) -> None:
        self.schema: Schema = build_schema(())
        self._listeners: dict[int, tuple[frozenset[str], ChangeCallback]] = {}
        self._next_listener_id = 0
        self._triggers: dict[tuple[str, Operation], list[Trigger]] = defaultdict(list)
        for table, operation, trigger in DEFAULT_TRIGGERS:
            self.register_trigger(table, operation, trigger)

    # Schema

    async def load_schema(self) -> Schema:
        """Refresh the schema from the migrations recorded in the store."""
        self.schema = build_schema(await self._load_applied())
        return self.schema

    async def migrate(self, target: str | None = None) -> list[str]:
        """Apply pending migrations in order, up to and including ``target``."""
        applied = await self._load_applied()
        newly_applied = []
        for migration in pending_migrations(applied, target):
            await self._apply_migration(migration)
            applied.append(migration.name)
            newly_applied.append(migration.name)
            logger.info("migration_applied", migration=migration.name)
        self.schema = build_schema(applied)
        return newly_applied

    def has_table(self, table: str) -> bool:
        return table in self.schema

    def has_column(self, table: str, column: str) -> bool:
        return column in self.schema.get(table, frozenset())

    def _check(self, table: str, columns: Iterable[str]) -> None:
        if table not in self.schema:
            raise MissingTableError(table)
        known = self.schema[table]
        for column in columns:
            if column not in known:
                raise MissingColumnError(table, column)

    # Rows

    async def select(
        self,
        table: str,
        where: Mapping[str, Any] | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        where = dict(where or {})
        self._check(table, [*where, *([order_by] if order_by else [])])
        return await self._select(table, where, order_by, descending, limit)

    async def insert(self, table: str, row: Mapping[str, Any], *, actor_id: UUID | None = None) -> Row:
        stored = {"id": uuid4(), **row}
        self._check(table, stored)
        await self._insert(table, stored)
        await self._after_write(table, "insert", [(None, stored)], actor_id)
        return stored

    async def update(
        self,
        table: str,
        where: Mapping[str, Any],
        values: Mapping[str, Any],
        *,
        actor_id: UUID | None = None,
    ) -> list[Row]:
        """Update matching rows and return them as they are after the write."""
        self._check(table, [*where, *values])
        old_rows = await self._select(table, dict(where), None, False, None)
        if not old_rows:
            return []
        await self._update(table, [row["id"] for row in old_rows], dict(values))
        changes = [(old, {**old, **values}) for old in old_rows]
        await self._after_write(table, "update", changes, actor_id)
        return [new for _, new in changes]

    async def delete(self, table: str, where: Mapping[str, Any], *, actor_id: UUID | None = None) -> list[Row]:
        """Delete matching rows and return what was removed."""
        self._check(table, where)
        old_rows = await self._select(table, dict(where), None, False, None)
        if not old_rows:
            return []
        await self._delete(table, [row["id"] for row in old_rows])
        await self._after_write(table, "delete", [(old, None) for old in old_rows], actor_id)
        return old_rows

    async def count(self, table: str, where: Mapping[str, Any] | None = None) -> int:
        where = dict(where or {})
        self._check(table, where)
        return await self._count(table, where)

    # Triggers and change feed

    def register_trigger(self, table: str, operation: Operation, trigger: Trigger) -> None:
        self._triggers[(table, operation)].append(trigger)

    async def _after_write(
        self, table: str, operation: Operation, changes: list[tuple[Row | None, Row | None]], actor_id: UUID | None
    ) -> None:
        for old, new in changes:
            event = TriggerEvent(table=table, operation=operation, old=old, new=new, actor_id=actor_id)
            for trigger in self._triggers[(table, operation)]:
                try:
                    await trigger(self, event)
                except SchemaMissingError as exc:
                    # Trigger targets a table the applied schema does not have yet
                    logger.debug("trigger_skipped", table=table, operation=operation, missing=exc.table)
        self._publish(table)

    def subscribe(self, tables: Iterable[str], callback: ChangeCallback) -> Subscription:
        """Invoke ``callback(table)`` whenever one of ``tables`` changes."""
        listener_id = self._next_listener_id
        self._next_listener_id += 1
        self._listeners[listener_id] = (frozenset(tables), callback)
        return Subscription(lambda: self._listeners.pop(listener_id, None))

    def _publish(self, table: str) -> None:
        for tables, callback in list(self._listeners.values()):
            if table in tables:
                callback(table)

    # Lifecycle

    async def close(self) -> None:
        """Release driver resources."""
        self._listeners.clear()

    # Driver primitives

    @staticmethod
    def matches(row: Row, where: Mapping[str, Any]) -> bool:
        for column, expected in where.items():
            value = row.get(column)
            if isinstance(expected, In):
                if value not in expected.values:
                    return False
            elif value != expected:
                return False
        return True

    @abstractmethod
    async def _load_applied(self) -> list[str]: ...

    @abstractmethod
    async def _apply_migration(self, migration: Migration) -> None: ...

    @abstractmethod
    async def _select(
        self, table: str, where: dict[str, Any], order_by: str | None, descending: bool, limit: int | None
    ) -> list[Row]: ...

    @abstractmethod
    async def _insert(self, table: str, row: Row) -> None: ...

    @abstractmethod
    async def _update(self, table: str, ids: list[Any], values: dict[str, Any]) -> None: ...

    @abstractmethod
    async def _delete(self, table: str, ids: list[Any]) -> None: ...

    @abstractmethod
    async def _count(self, table: str, where: dict[str, Any]) -> int: ...
