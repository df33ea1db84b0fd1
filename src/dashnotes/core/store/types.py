from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal
from uuid import UUID

Row = dict[str, Any]
Operation = Literal["insert", "update", "delete"]

# Change-feed callback; receives only the name of the table that changed
ChangeCallback = Callable[[str], None]


@dataclass(frozen=True)
class In:
    """Membership filter value: ``{"id": In((a, b))}`` matches rows whose id is a or b."""

    values: tuple[Any, ...]


@dataclass(frozen=True)
class TriggerEvent:
    table: str
    operation: Operation
    old: Row | None
    new: Row | None
    actor_id: UUID | None = None  # User performing the write, when known


class Subscription:
    """Handle returned by ``Store.subscribe``; ``close()`` stops delivery."""

    def __init__(self, on_close: Callable[[], None]) -> None:
        self._on_close = on_close
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._on_close()
