from dashnotes.core.store.base import Store
from dashnotes.core.store.memory import MemoryStore
from dashnotes.core.store.mongo import MongoStore
from dashnotes.core.store.types import ChangeCallback, In, Row, Subscription, TriggerEvent


def create_store(database_url: str | None) -> Store | None:
    """Build the store named by ``database_url``; ``None`` means demo mode."""
    if not database_url:
        return None
    if database_url.startswith("memory://"):
        return MemoryStore()
    if database_url.startswith(("mongodb://", "mongodb+srv://")):
        return MongoStore.from_url(database_url)
    raise ValueError(f"Unsupported database url scheme: {database_url.split('://', 1)[0]}")


__all__ = [
    "ChangeCallback",
    "In",
    "MemoryStore",
    "MongoStore",
    "Row",
    "Store",
    "Subscription",
    "TriggerEvent",
    "create_store",
]
