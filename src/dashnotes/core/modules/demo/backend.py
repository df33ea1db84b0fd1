from uuid import UUID

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaValidationError

from dashnotes.core.modules.access.identity import IdentityProvider
from dashnotes.core.modules.backend.interface import NoteBackend
from dashnotes.core.modules.demo.seeds import seed_notes
from dashnotes.core.modules.demo.storage import LocalStorage, MemoryLocalStorage
from dashnotes.core.modules.note.models import Note
from dashnotes.core.modules.notification.models import Notification
from dashnotes.core.modules.share.models import PermissionLevel, ShareResult, ShareView
from dashnotes.core.modules.user.models import Role
from dashnotes.errors import NotFoundError, NotSupportedInDemoModeError, ValidationError
from dashnotes.utils import now

logger = structlog.get_logger(__name__)

_notes_adapter = TypeAdapter(list[Note])

SHARING_NOT_SUPPORTED = "Sharing is not available in demo mode. Connect a database to share notes."


def slot_key(role: Role) -> str:
    return f"dashnotes.demo_notes.{role}"


class DemoNoteBackend(NoteBackend):
    """Notes kept in a role-scoped local slot; sharing and notifications do not exist here.

    A session only ever sees and changes its own role's slot.

    Mutations are synchronous against the slot and there is no change feed;
    callers re-read the collection after each mutation.
    """

    is_live = False

    def __init__(self, role: Role, storage: LocalStorage, identity: IdentityProvider) -> None:
        super().__init__(identity)
        self.role = role
        self._storage = storage

    def _read(self, key: str) -> str | None:
        try:
            return self._storage.get(key)
        except OSError as exc:
            self._fall_back_to_memory(exc)
            return self._storage.get(key)

    def _write(self, key: str, value: str) -> None:
        try:
            self._storage.set(key, value)
        except OSError as exc:
            self._fall_back_to_memory(exc)
            self._storage.set(key, value)

    def _fall_back_to_memory(self, exc: OSError) -> None:
        # Storage disabled or unwritable: keep going in memory for this session
        logger.warning("demo_storage_unavailable", role=self.role, error=str(exc))
        self._storage = MemoryLocalStorage()

    def load(self, role: Role) -> list[Note]:
        """Return the role's notes, seeding the slot the first time it is read.

        A slot that no longer parses is replaced by fresh seed notes.
        """
        raw = self._read(slot_key(role))
        if raw is not None:
            try:
                return _notes_adapter.validate_json(raw)
            except SchemaValidationError as exc:
                logger.warning("demo_slot_corrupt", role=role, errors=exc.error_count())
        notes = seed_notes(role)
        self.save(role, notes)
        logger.debug("demo_notes_seeded", role=role, count=len(notes))
        return notes

    def save(self, role: Role, notes: list[Note]) -> None:
        self._write(slot_key(role), _notes_adapter.dump_json(notes).decode("utf-8"))

    def _find(self, note_id: UUID) -> tuple[list[Note], int] | None:
        notes = self.load(self.role)
        for index, note in enumerate(notes):
            if note.id == note_id:
                return notes, index
        return None

    async def list_own_notes(self, owner_role: Role) -> list[Note]:
        await self._require_user()
        if owner_role != self.role:
            return []
        return sorted(self.load(self.role), key=lambda note: note.created_at, reverse=True)

    async def list_shared_notes(self) -> list[Note]:
        return []

    async def list_notifications(self, limit: int | None = None) -> list[Notification]:
        return []

    async def create_note(
        self,
        content: str,
        *,
        title: str | None = None,
        owner_role: Role | None = None,
        created_for_role: Role | None = None,
        category: str | None = None,
        tags: list[str] | None = None,
        is_pinned: bool = False,
        share_immediately: bool = False,
        permission_level: PermissionLevel = PermissionLevel.VIEW,
        share_message: str | None = None,
    ) -> Note:
        user = await self._require_user()
        if not content.strip():
            raise ValidationError("Note content cannot be empty")
        if share_immediately:
            raise NotSupportedInDemoModeError(SHARING_NOT_SUPPORTED)

        timestamp = now()
        note = Note(
            title=title or None,
            content=content,
            owner_role=self.role,
            created_for_role=created_for_role,
            created_by=user.id,
            created_at=timestamp,
            updated_at=timestamp,
            category=category,
            tags=tags or [],
            is_pinned=is_pinned,
        )
        notes = self.load(self.role)
        notes.insert(0, note)
        self.save(self.role, notes)
        return note

    async def update_note(self, note_id: UUID, content: str, title: str | None = None) -> None:
        found = self._find(note_id)
        if found is None:
            raise NotFoundError(f"Note not found: {note_id}")
        notes, index = found
        changes: dict[str, object] = {"content": content, "updated_at": now()}
        if title is not None:
            changes["title"] = title
        notes[index] = notes[index].model_copy(update=changes)
        self.save(self.role, notes)

    async def delete_note(self, note_id: UUID) -> None:
        found = self._find(note_id)
        if found is None:
            return
        notes, index = found
        del notes[index]
        self.save(self.role, notes)

    async def share_note_with_role(
        self,
        note_id: UUID,
        target_role: Role,
        permission_level: PermissionLevel = PermissionLevel.VIEW,
        message: str | None = None,
    ) -> ShareResult:
        raise NotSupportedInDemoModeError(SHARING_NOT_SUPPORTED)

    async def unshare_note(self, note_id: UUID, user_id: UUID | None = None) -> None:
        raise NotSupportedInDemoModeError(SHARING_NOT_SUPPORTED)

    async def get_note_shares(self, note_id: UUID) -> list[ShareView]:
        return []

    async def mark_notification_as_read(self, notification_id: UUID) -> None:
        """No notifications exist in demo mode."""

    async def mark_all_notifications_as_read(self) -> None:
        """No notifications exist in demo mode."""
