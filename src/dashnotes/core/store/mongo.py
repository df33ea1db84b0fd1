import asyncio
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from dashnotes.core.store.base import Store
from dashnotes.core.store.schema import Migration
from dashnotes.core.store.types import ChangeCallback, In, Row, Subscription
from dashnotes.errors import StoreError
from dashnotes.utils import now

logger = structlog.get_logger(__name__)

MIGRATIONS_COLLECTION = "_migrations"


@contextmanager
def driver_errors(operation: str, table: str) -> Iterator[None]:
    """Translate driver exceptions into StoreError, keeping the original message."""
    try:
        yield
    except PyMongoError as exc:
        raise StoreError(f"{operation} on '{table}' failed: {exc}") from exc


def to_query(where: dict[str, Any]) -> dict[str, Any]:
    query: dict[str, Any] = {}
    for column, value in where.items():
        field = "_id" if column == "id" else column
        query[field] = {"$in": list(value.values)} if isinstance(value, In) else value
    return query


def to_document(row: Row) -> dict[str, Any]:
    document = dict(row)
    document["_id"] = document.pop("id")  # Rename id → _id for MongoDB
    return document


def from_document(document: dict[str, Any]) -> Row:
    row = dict(document)
    row["id"] = row.pop("_id")
    return row


class MongoStore(Store):
    """Store backed by MongoDB; tables map to collections, the feed to change streams."""

    def __init__(self, client: AsyncMongoClient[dict[str, Any]], database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__()
        self._client = client
        self._database = database
        self._watchers: set[asyncio.Task[None]] = set()

    @classmethod
    def from_url(cls, database_url: str) -> "MongoStore":
        client: AsyncMongoClient[dict[str, Any]] = AsyncMongoClient(
            database_url, uuidRepresentation="standard", tz_aware=True
        )
        database = client.get_database(urlparse(database_url).path[1:] or "dashnotes")
        return cls(client, database)

    async def _load_applied(self) -> list[str]:
        with driver_errors("load migrations", MIGRATIONS_COLLECTION):
            cursor = self._database.get_collection(MIGRATIONS_COLLECTION).find().sort("applied_at", 1)
            return [doc["_id"] for doc in await cursor.to_list()]

    async def _apply_migration(self, migration: Migration) -> None:
        with driver_errors("apply migration", migration.name):
            existing = set(await self._database.list_collection_names())
            for table in migration.tables:
                if table not in existing:
                    await self._database.create_collection(table)
            for index in migration.indexes:
                await self._database.get_collection(index.table).create_index(list(index.keys), unique=index.unique)
            await self._database.get_collection(MIGRATIONS_COLLECTION).insert_one(
                {"_id": migration.name, "applied_at": now()}
            )

    async def _select(
        self, table: str, where: dict[str, Any], order_by: str | None, descending: bool, limit: int | None
    ) -> list[Row]:
        with driver_errors("select", table):
            cursor = self._database.get_collection(table).find(to_query(where))
            if order_by:
                cursor = cursor.sort("_id" if order_by == "id" else order_by, -1 if descending else 1)
            if limit is not None:
                cursor = cursor.limit(limit)
            return [from_document(doc) for doc in await cursor.to_list()]

    async def _insert(self, table: str, row: Row) -> None:
        with driver_errors("insert", table):
            await self._database.get_collection(table).insert_one(to_document(row))

    async def _update(self, table: str, ids: list[Any], values: dict[str, Any]) -> None:
        with driver_errors("update", table):
            await self._database.get_collection(table).update_many({"_id": {"$in": ids}}, {"$set": values})

    async def _delete(self, table: str, ids: list[Any]) -> None:
        with driver_errors("delete", table):
            await self._database.get_collection(table).delete_many({"_id": {"$in": ids}})

    async def _count(self, table: str, where: dict[str, Any]) -> int:
        with driver_errors("count", table):
            return await self._database.get_collection(table).count_documents(to_query(where))

    def subscribe(self, tables: Iterable[str], callback: ChangeCallback) -> Subscription:
        """Watch the collections through a change stream.

        Change streams need a replica set; on a standalone server the watcher
        falls back to in-process signals, which only see writes made through
        this store instance.
        """
        task = asyncio.create_task(self._watch(frozenset(tables), callback))
        self._watchers.add(task)

        def stop() -> None:
            task.cancel()
            self._watchers.discard(task)

        return Subscription(stop)

    async def _watch(self, tables: frozenset[str], callback: ChangeCallback) -> None:
        pipeline = [{"$match": {"ns.coll": {"$in": sorted(tables)}}}]
        try:
            async with await self._database.watch(pipeline) as stream:
                async for change in stream:
                    callback(change["ns"]["coll"])
        except PyMongoError as exc:
            logger.warning("change_stream_unavailable", tables=sorted(tables), error=str(exc))
            fallback = Store.subscribe(self, tables, callback)
            try:
                await asyncio.Event().wait()  # Held until the subscription is closed
            finally:
                fallback.close()

    async def close(self) -> None:
        for task in list(self._watchers):
            task.cancel()
        self._watchers.clear()
        await super().close()
        await self._client.aclose()
