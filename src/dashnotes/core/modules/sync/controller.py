import asyncio
from collections.abc import Awaitable
from types import TracebackType
from typing import Any, Self, TypeVar
from uuid import UUID

import structlog

from dashnotes.core.modules.backend.interface import NoteBackend
from dashnotes.core.modules.note.models import Note
from dashnotes.core.modules.share.models import PermissionLevel, Share
from dashnotes.core.modules.sync.models import NotesState
from dashnotes.core.modules.user.models import Role
from dashnotes.core.store import Subscription
from dashnotes.errors import StoreError, UserError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class NotesSyncController:
    """Keeps one dashboard's notes, shared notes and notifications current as a single state.

    Live backends push change signals; every signal triggers a full refresh of the
    three collections. A refresh that finishes after a newer one started is discarded.
    """

    def __init__(
        self,
        backend: NoteBackend,
        dashboard_role: Role,
        *,
        auto_refresh: bool = True,
        notifications_limit: int | None = None,
    ) -> None:
        self.backend = backend
        self.dashboard_role = dashboard_role
        self.auto_refresh = auto_refresh
        self.notifications_limit = notifications_limit
        self.state = NotesState(is_demo=not backend.is_live)
        self._generation = 0
        self._subscription: Subscription | None = None
        self._tasks: set[asyncio.Task[NotesState]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> NotesState:
        if self.backend.is_live and self.auto_refresh and self._subscription is None:
            self._subscription = self.backend.subscribe(self._on_change)
        return await self.refresh()

    def _on_change(self, table: str) -> None:
        if self._closed:
            return
        logger.debug("notes_change_received", table=table, role=self.dashboard_role)
        task = asyncio.create_task(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def refresh(self) -> NotesState:
        """Re-read all three collections concurrently and replace the state in one step."""
        if self._closed:
            return self.state
        self._generation += 1
        generation = self._generation
        self.state = self.state.model_copy(update={"loading": True})

        warnings: list[str] = []
        try:
            notes, shared_notes, notifications = await asyncio.gather(
                self._read("notes", self.backend.list_own_notes(self.dashboard_role), warnings),
                self._read("shared_notes", self.backend.list_shared_notes(), warnings),
                self._read("notifications", self.backend.list_notifications(self.notifications_limit), warnings),
            )
        finally:
            # A newer refresh owns the loading flag
            if generation == self._generation:
                self.state = self.state.model_copy(update={"loading": False})

        if self._closed or generation != self._generation:
            logger.debug("stale_refresh_discarded", generation=generation, latest=self._generation)
            return self.state

        self.state = self.state.model_copy(
            update={
                "notes": notes,
                "shared_notes": shared_notes,
                "notifications": notifications,
                "warnings": warnings,
            }
        )
        return self.state

    async def _read(self, collection: str, read: Awaitable[list[Any]], warnings: list[str]) -> list[Any]:
        try:
            return await read
        except (UserError, StoreError) as exc:
            logger.warning("notes_collection_unavailable", collection=collection, error=str(exc))
            reason = str(exc)
        except Exception as exc:
            logger.exception("notes_collection_read_failed", collection=collection)
            reason = str(exc) or type(exc).__name__
        warnings.append(f"Could not load {collection.replace('_', ' ')}: {reason}")
        return []

    async def _mutate(self, action: str, operation: Awaitable[T]) -> T:
        self.state = self.state.model_copy(update={"saving": True, "error": None})
        try:
            result = await operation
        except (UserError, StoreError) as exc:
            logger.warning("notes_mutation_failed", action=action, error=str(exc))
            self.state = self.state.model_copy(update={"error": str(exc)})
            raise
        finally:
            self.state = self.state.model_copy(update={"saving": False})
        await self.refresh()
        return result

    # Mutations

    async def create_note(
        self,
        content: str,
        *,
        title: str | None = None,
        created_for_role: Role | None = None,
        category: str | None = None,
        tags: list[str] | None = None,
        is_pinned: bool = False,
        share_immediately: bool = False,
        permission_level: PermissionLevel = PermissionLevel.VIEW,
        share_message: str | None = None,
    ) -> Note:
        return await self._mutate(
            "create_note",
            self.backend.create_note(
                content,
                title=title,
                owner_role=self.dashboard_role,
                created_for_role=created_for_role,
                category=category,
                tags=tags,
                is_pinned=is_pinned,
                share_immediately=share_immediately,
                permission_level=permission_level,
                share_message=share_message,
            ),
        )

    async def update_note(self, note_id: UUID, content: str, title: str | None = None) -> None:
        await self._mutate("update_note", self.backend.update_note(note_id, content, title))

    async def delete_note(self, note_id: UUID) -> None:
        await self._mutate("delete_note", self.backend.delete_note(note_id))

    async def share_note_with_role(
        self,
        note_id: UUID,
        target_role: Role,
        permission_level: PermissionLevel = PermissionLevel.VIEW,
        message: str | None = None,
    ) -> Share:
        return await self._mutate("share_note", self._share(note_id, target_role, permission_level, message))

    async def _share(
        self, note_id: UUID, target_role: Role, permission_level: PermissionLevel, message: str | None
    ) -> Share:
        result = await self.backend.share_note_with_role(note_id, target_role, permission_level, message)
        return result.raise_for_error()

    async def unshare_note(self, note_id: UUID, user_id: UUID | None = None) -> None:
        await self._mutate("unshare_note", self.backend.unshare_note(note_id, user_id))

    async def mark_notification_as_read(self, notification_id: UUID) -> None:
        await self._mutate("mark_notification_as_read", self.backend.mark_notification_as_read(notification_id))

    async def mark_all_notifications_as_read(self) -> None:
        await self._mutate("mark_all_notifications_as_read", self.backend.mark_all_notifications_as_read())

    # Lifecycle

    async def close(self) -> None:
        """Stop listening for changes and drop in-flight refreshes."""
        if self._closed:
            return
        self._closed = True
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()
