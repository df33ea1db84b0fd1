from abc import ABC, abstractmethod
from uuid import UUID

from dashnotes.core.modules.access.identity import IdentityProvider
from dashnotes.core.modules.note.models import Note
from dashnotes.core.modules.notification.models import Notification
from dashnotes.core.modules.share.models import PermissionLevel, ShareResult, ShareView
from dashnotes.core.modules.user.models import CurrentUser, Role
from dashnotes.core.store import ChangeCallback, Subscription
from dashnotes.errors import NotAuthenticatedError


class NoteBackend(ABC):
    """Notes operations for one caller, backed either by the store or by local demo storage.

    Selected once at construction; consumers never branch on the mode.
    """

    is_live: bool = False  # True when changes arrive through a change feed

    def __init__(self, identity: IdentityProvider) -> None:
        self._identity = identity

    async def _require_user(self) -> CurrentUser:
        user = await self._identity.get_current_user()
        if user is None:
            raise NotAuthenticatedError
        return user

    @abstractmethod
    async def list_own_notes(self, owner_role: Role) -> list[Note]: ...

    @abstractmethod
    async def list_shared_notes(self) -> list[Note]: ...

    @abstractmethod
    async def list_notifications(self, limit: int | None = None) -> list[Notification]: ...

    @abstractmethod
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
    ) -> Note: ...

    @abstractmethod
    async def update_note(self, note_id: UUID, content: str, title: str | None = None) -> None: ...

    @abstractmethod
    async def delete_note(self, note_id: UUID) -> None: ...

    @abstractmethod
    async def share_note_with_role(
        self,
        note_id: UUID,
        target_role: Role,
        permission_level: PermissionLevel = PermissionLevel.VIEW,
        message: str | None = None,
    ) -> ShareResult: ...

    @abstractmethod
    async def unshare_note(self, note_id: UUID, user_id: UUID | None = None) -> None: ...

    @abstractmethod
    async def get_note_shares(self, note_id: UUID) -> list[ShareView]: ...

    @abstractmethod
    async def mark_notification_as_read(self, notification_id: UUID) -> None: ...

    @abstractmethod
    async def mark_all_notifications_as_read(self) -> None: ...

    def subscribe(self, callback: ChangeCallback) -> Subscription | None:
        """Register for change signals; backends without a feed return None."""
        return None
