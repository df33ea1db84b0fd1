from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID

from dashnotes.config import Config
from dashnotes.core.core import Core
from dashnotes.core.modules.access.identity import StaticIdentity
from dashnotes.core.modules.backend.factory import create_note_backend
from dashnotes.core.modules.backend.interface import NoteBackend
from dashnotes.core.modules.note.models import Note
from dashnotes.core.modules.session.models import AuthToken
from dashnotes.core.modules.share.models import PermissionLevel, Share, ShareView
from dashnotes.core.modules.sync.controller import NotesSyncController
from dashnotes.core.modules.sync.models import NotesState
from dashnotes.core.modules.user.models import CurrentUser, Role
from dashnotes.core.store import Store
from dashnotes.errors import NotAuthenticatedError


class App:
    """Facade for all application operations, authenticates the caller before delegating to a notes backend."""

    def __init__(self, config: Config, store: Store | None = None) -> None:
        self._core = Core(config, store)

    @property
    def core(self) -> Core:
        return self._core

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        return await self._core.services.session.is_auth_token_valid(auth_token)

    async def login(self, username: str, password: str) -> AuthToken:
        """Authenticate user and create session."""
        if self._core.is_demo_only or not self._core.services.user.verify_password(username, password):
            raise NotAuthenticatedError("Invalid credentials")
        user = self._core.services.user.get_user_by_username(username)
        return await self._core.services.session.create_session(user.id)

    async def start_demo_session(self, role: Role) -> AuthToken:
        """Open a demo session for a dashboard; its notes live in local storage only."""
        return self._core.services.session.create_demo_session(role)

    async def logout(self, auth_token: AuthToken) -> None:
        """Invalidate user session."""
        await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.session.invalidate_session(auth_token)

    async def get_current_user(self, auth_token: AuthToken) -> CurrentUser:
        return await self._core.services.access.ensure_authenticated(auth_token)

    async def get_notes_state(self, auth_token: AuthToken, dashboard_role: Role | None = None) -> NotesState:
        """Read own notes, shared notes and notifications for a dashboard in one refresh."""
        current_user, backend = await self._backend(auth_token)
        controller = NotesSyncController(
            backend,
            dashboard_role or current_user.role,
            auto_refresh=False,
            notifications_limit=self._core.config.notifications_limit,
        )
        async with controller:
            return controller.state

    async def create_note(
        self,
        auth_token: AuthToken,
        content: str,
        *,
        title: str | None = None,
        dashboard_role: Role | None = None,
        created_for_role: Role | None = None,
        category: str | None = None,
        tags: list[str] | None = None,
        is_pinned: bool = False,
        share_immediately: bool = False,
        permission_level: PermissionLevel = PermissionLevel.VIEW,
        share_message: str | None = None,
    ) -> Note:
        """Create a note on a dashboard, optionally authored for and shared with the other role."""
        current_user, backend = await self._backend(auth_token)
        return await backend.create_note(
            content,
            title=title,
            owner_role=dashboard_role or current_user.role,
            created_for_role=created_for_role,
            category=category,
            tags=tags,
            is_pinned=is_pinned,
            share_immediately=share_immediately,
            permission_level=permission_level,
            share_message=share_message,
        )

    async def update_note(self, auth_token: AuthToken, note_id: UUID, content: str, title: str | None = None) -> None:
        _, backend = await self._backend(auth_token)
        await backend.update_note(note_id, content, title)

    async def delete_note(self, auth_token: AuthToken, note_id: UUID) -> None:
        _, backend = await self._backend(auth_token)
        await backend.delete_note(note_id)

    async def get_note_shares(self, auth_token: AuthToken, note_id: UUID) -> list[ShareView]:
        _, backend = await self._backend(auth_token)
        return await backend.get_note_shares(note_id)

    async def share_note(
        self,
        auth_token: AuthToken,
        note_id: UUID,
        target_role: Role,
        permission_level: PermissionLevel = PermissionLevel.VIEW,
        message: str | None = None,
    ) -> Share:
        """Share a note with the holder of a role; a failed result is raised as its typed error."""
        _, backend = await self._backend(auth_token)
        result = await backend.share_note_with_role(note_id, target_role, permission_level, message)
        return result.raise_for_error()

    async def unshare_note(self, auth_token: AuthToken, note_id: UUID, user_id: UUID | None = None) -> None:
        _, backend = await self._backend(auth_token)
        await backend.unshare_note(note_id, user_id)

    async def mark_notification_as_read(self, auth_token: AuthToken, notification_id: UUID) -> None:
        _, backend = await self._backend(auth_token)
        await backend.mark_notification_as_read(notification_id)

    async def mark_all_notifications_as_read(self, auth_token: AuthToken) -> None:
        _, backend = await self._backend(auth_token)
        await backend.mark_all_notifications_as_read()

    async def _backend(self, auth_token: AuthToken) -> tuple[CurrentUser, NoteBackend]:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return current_user, create_note_backend(self._core, StaticIdentity(current_user), current_user)
