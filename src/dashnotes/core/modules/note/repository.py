from typing import Any
from uuid import UUID

import structlog

from dashnotes.core.core import Service
from dashnotes.core.modules.note.models import Note, NoteFlags
from dashnotes.core.modules.notification.models import Notification
from dashnotes.core.modules.user.models import CurrentUser, Role
from dashnotes.core.store import In, Row
from dashnotes.core.store.schema import NOTE_NOTIFICATIONS, NOTE_SHARES, NOTES
from dashnotes.errors import (
    FeatureUnavailableError,
    MissingColumnError,
    NotAuthenticatedError,
    NotFoundError,
    SchemaMissingError,
    ValidationError,
)
from dashnotes.utils import now

logger = structlog.get_logger(__name__)

DEFAULT_NOTIFICATIONS_LIMIT = 20


def note_from_row(row: Row, owner_role: Role | None = None) -> Note:
    """Build a Note from a row, filling defaults for columns a degraded schema lacks."""
    data: dict[str, Any] = {"is_shared": False, "is_collaborative": False}
    if owner_role is not None:
        data["owner_role"] = owner_role
    data.update({key: value for key, value in row.items() if value is not None or key not in data})
    return Note.model_validate(data)


class NoteRepository(Service):
    """CRUD and queries for notes, their shares and notifications."""

    def _note_from_row(self, row: Row) -> Note:
        owner_role = None
        if row.get("owner_role") is None:
            # Rows written before the sharing migration belong to their author's dashboard
            author = self.core.services.user.find_user(row.get("created_by"))
            owner_role = author.role if author else None
        return note_from_row(row, owner_role)

    async def list_own_notes(self, owner_role: Role, user_id: UUID) -> list[Note]:
        """Notes created by the user on the given dashboard, newest first."""
        try:
            rows = await self.store.select(
                NOTES, {"created_by": user_id, "owner_role": owner_role}, order_by="created_at", descending=True
            )
        except MissingColumnError as exc:
            # Sharing migration not applied yet: match by creator only
            logger.warning("notes_schema_degraded", column=exc.column, user_id=user_id)
            rows = await self.store.select(NOTES, {"created_by": user_id}, order_by="created_at", descending=True)
        return [note_from_row(row, owner_role) for row in rows]

    async def list_shared_notes(self, user_id: UUID) -> list[Note]:
        """Notes with an active share whose recipient is the user, newest first."""
        try:
            shares = await self.store.select(NOTE_SHARES, {"shared_with_user_id": user_id})
        except SchemaMissingError as exc:
            logger.warning("shared_notes_unavailable", missing=exc.table, user_id=user_id)
            return []

        note_ids = tuple({share["note_id"] for share in shares})
        if not note_ids:
            return []
        rows = await self.store.select(NOTES, {"id": In(note_ids)}, order_by="created_at", descending=True)
        return [self._note_from_row(row) for row in rows]

    async def list_notifications(self, user_id: UUID, limit: int = DEFAULT_NOTIFICATIONS_LIMIT) -> list[Notification]:
        """Most recent notifications for the user, each with its note embedded when it still exists."""
        try:
            rows = await self.store.select(
                NOTE_NOTIFICATIONS,
                {"recipient_user_id": user_id},
                order_by="created_at",
                descending=True,
                limit=limit,
            )
        except SchemaMissingError as exc:
            logger.warning("notifications_unavailable", missing=exc.table, user_id=user_id)
            return []

        note_ids = tuple({row["note_id"] for row in rows})
        notes: dict[UUID, Note] = {}
        if note_ids:
            note_rows = await self.store.select(NOTES, {"id": In(note_ids)})
            notes = {row["id"]: self._note_from_row(row) for row in note_rows}
        return [Notification.model_validate({**row, "note": notes.get(row["note_id"])}) for row in rows]

    async def get_note(self, note_id: UUID) -> Note:
        """Get note by ID."""
        rows = await self.store.select(NOTES, {"id": note_id})
        if not rows:
            raise NotFoundError(f"Note not found: {note_id}")
        return self._note_from_row(rows[0])

    async def create_note(
        self,
        current_user: CurrentUser | None,
        content: str,
        *,
        title: str | None = None,
        owner_role: Role | None = None,
        created_for_role: Role | None = None,
        category: str | None = None,
        tags: list[str] | None = None,
        is_pinned: bool = False,
    ) -> Note:
        """Create a note owned by the given dashboard (defaults to the caller's role)."""
        if current_user is None:
            raise NotAuthenticatedError
        if not content.strip():
            raise ValidationError("Note content cannot be empty")

        timestamp = now()
        note = Note(
            title=title or None,
            content=content,
            owner_role=owner_role or current_user.role,
            created_for_role=created_for_role,
            created_by=current_user.id,
            created_at=timestamp,
            updated_at=timestamp,
            category=category,
            tags=tags or [],
            is_pinned=is_pinned,
        )
        row = note.to_row()
        try:
            await self.store.insert(NOTES, row, actor_id=current_user.id)
        except MissingColumnError as exc:
            logger.warning("note_created_with_degraded_schema", column=exc.column)
            reduced = {key: value for key, value in row.items() if self.store.has_column(NOTES, key)}
            await self.store.insert(NOTES, reduced, actor_id=current_user.id)

        logger.info("note_created", note_id=note.id, owner_role=note.owner_role, created_by=note.created_by)
        return note

    async def update_note(
        self, note_id: UUID, content: str, title: str | None = None, editor_id: UUID | None = None
    ) -> None:
        """Update content (and title when given).

        Edit rights are not checked here; callers establish them before calling.
        """
        values: dict[str, Any] = {"content": content, "updated_at": now()}
        if title is not None:
            values["title"] = title
        updated = await self.store.update(NOTES, {"id": note_id}, values, actor_id=editor_id)
        if not updated:
            raise NotFoundError(f"Note not found: {note_id}")
        logger.debug("note_updated", note_id=note_id, editor_id=editor_id)

    async def delete_note(self, note_id: UUID, actor_id: UUID | None = None) -> None:
        """Hard delete; the store cascades to shares and notifications."""
        deleted = await self.store.delete(NOTES, {"id": note_id}, actor_id=actor_id)
        logger.info("note_deleted", note_id=note_id, found=bool(deleted))

    async def set_flags(self, note_id: UUID, flags: NoteFlags) -> None:
        try:
            await self.store.update(NOTES, {"id": note_id}, flags.model_dump())
        except MissingColumnError as exc:
            raise FeatureUnavailableError from exc
