from uuid import UUID

from dashnotes.core.core import Core
from dashnotes.core.modules.access.identity import IdentityProvider
from dashnotes.core.modules.backend.interface import NoteBackend
from dashnotes.core.modules.note.models import Note
from dashnotes.core.modules.notification.models import Notification
from dashnotes.core.modules.share.models import PermissionLevel, ShareResult, ShareView
from dashnotes.core.modules.user.models import Role
from dashnotes.core.store import ChangeCallback, Subscription
from dashnotes.core.store.schema import WATCHED_TABLES
from dashnotes.errors import NotFoundError


class RemoteNoteBackend(NoteBackend):
    """Notes operations against the authoritative store."""

    is_live = True

    def __init__(self, core: Core, identity: IdentityProvider) -> None:
        super().__init__(identity)
        self._core = core
        self._services = core.services

    async def list_own_notes(self, owner_role: Role) -> list[Note]:
        user = await self._require_user()
        return await self._services.note.list_own_notes(owner_role, user.id)

    async def list_shared_notes(self) -> list[Note]:
        user = await self._require_user()
        return await self._services.note.list_shared_notes(user.id)

    async def list_notifications(self, limit: int | None = None) -> list[Notification]:
        user = await self._require_user()
        return await self._services.note.list_notifications(user.id, limit or self._core.config.notifications_limit)

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
        user = await self._identity.get_current_user()
        note = await self._services.note.create_note(
            user,
            content,
            title=title,
            owner_role=owner_role,
            created_for_role=created_for_role,
            category=category,
            tags=tags,
            is_pinned=is_pinned,
        )
        if share_immediately and created_for_role is not None:
            result = await self._services.share.share_note_with_role(
                user, note.id, created_for_role, permission_level, share_message
            )
            result.raise_for_error()
            return await self._services.note.get_note(note.id)
        return note

    async def update_note(self, note_id: UUID, content: str, title: str | None = None) -> None:
        user = await self._require_user()
        await self._services.access.ensure_can_edit_note(user, note_id)
        await self._services.note.update_note(note_id, content, title, editor_id=user.id)

    async def delete_note(self, note_id: UUID) -> None:
        user = await self._require_user()
        try:
            await self._services.access.ensure_note_author(user, note_id)
        except NotFoundError:
            return
        await self._services.note.delete_note(note_id, actor_id=user.id)

    async def share_note_with_role(
        self,
        note_id: UUID,
        target_role: Role,
        permission_level: PermissionLevel = PermissionLevel.VIEW,
        message: str | None = None,
    ) -> ShareResult:
        user = await self._identity.get_current_user()
        return await self._services.share.share_note_with_role(user, note_id, target_role, permission_level, message)

    async def unshare_note(self, note_id: UUID, user_id: UUID | None = None) -> None:
        user = await self._identity.get_current_user()
        await self._services.share.unshare_note(user, note_id, user_id)

    async def get_note_shares(self, note_id: UUID) -> list[ShareView]:
        user = await self._require_user()
        return await self._services.share.get_note_shares(user, note_id)

    async def mark_notification_as_read(self, notification_id: UUID) -> None:
        user = await self._require_user()
        await self._services.notification.mark_notification_as_read(notification_id, user.id)

    async def mark_all_notifications_as_read(self) -> None:
        user = await self._require_user()
        await self._services.notification.mark_all_notifications_as_read(user.id)

    def subscribe(self, callback: ChangeCallback) -> Subscription | None:
        return self._services.note.store.subscribe(WATCHED_TABLES, callback)
