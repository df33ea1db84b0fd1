"""Local durable key/value slots used by the demo store."""

import re
from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class LocalStorage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryLocalStorage:
    """Slots kept in a dict; lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._slots = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._slots.get(key)

    def set(self, key: str, value: str) -> None:
        self._slots[key] = value


class FileLocalStorage:
    """One file per slot inside ``directory``; survives restarts.

    When the directory cannot be written, slots are kept in memory for the
    rest of the process instead.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self._unwritable: dict[str, str] = {}

    def _path(self, key: str) -> Path:
        return self.directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        if key in self._unwritable:
            return self._unwritable[key]
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".tmp")
            tmp_path.write_text(value, encoding="utf-8")
            tmp_path.replace(path)
        except OSError as exc:
            if key not in self._unwritable:
                logger.warning("demo_slot_not_persisted", key=key, directory=str(self.directory), error=str(exc))
            self._unwritable[key] = value
            return
        self._unwritable.pop(key, None)


def create_local_storage(path: str | None) -> LocalStorage:
    if path:
        return FileLocalStorage(path)
    return MemoryLocalStorage()
