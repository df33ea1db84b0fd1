from enum import StrEnum

from pydantic import BaseModel, Field, computed_field

from dashnotes.core.modules.note.models import Note
from dashnotes.core.modules.notification.models import Notification, unread_count
from dashnotes.utils import matches_search


class ViewMode(StrEnum):
    ALL = "all"
    PERSONAL = "personal"
    SHARED = "shared"


class NotesState(BaseModel):
    """Snapshot of one dashboard's notes collections as last read from the backend."""

    notes: list[Note] = Field(default_factory=list)
    shared_notes: list[Note] = Field(default_factory=list)
    notifications: list[Notification] = Field(default_factory=list)
    loading: bool = False
    saving: bool = False
    error: str | None = None
    warnings: list[str] = Field(default_factory=list)  # Collections that failed to load on the last refresh
    is_demo: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def unread_count(self) -> int:
        return unread_count(self.notifications)

    def visible_notes(
        self, view_mode: ViewMode = ViewMode.ALL, search: str = "", category: str | None = None
    ) -> list[Note]:
        """Notes for display: filtered by view, category and search, pinned first, then newest first."""
        match view_mode:
            case ViewMode.PERSONAL:
                candidates = list(self.notes)
            case ViewMode.SHARED:
                candidates = list(self.shared_notes)
            case _:
                seen = {note.id for note in self.notes}
                candidates = list(self.notes) + [note for note in self.shared_notes if note.id not in seen]

        if category:
            candidates = [note for note in candidates if note.category == category]
        filtered = [note for note in candidates if matches_search(search, note.title, note.content)]
        filtered.sort(key=lambda note: note.created_at, reverse=True)
        filtered.sort(key=lambda note: not note.is_pinned)
        return filtered
