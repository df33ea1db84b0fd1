from uuid import UUID

from dashnotes.core.core import Service
from dashnotes.core.modules.note.models import Note
from dashnotes.core.modules.session.models import AuthToken
from dashnotes.core.modules.share.models import PermissionLevel
from dashnotes.core.modules.user.models import CurrentUser
from dashnotes.core.store.schema import NOTE_SHARES
from dashnotes.errors import AccessDeniedError, SchemaMissingError


class AccessService(Service):
    async def ensure_authenticated(self, auth_token: AuthToken) -> CurrentUser:
        """Ensure the user is authenticated."""
        return await self.core.services.session.get_authenticated_user(auth_token)

    async def ensure_can_edit_note(self, current_user: CurrentUser, note_id: UUID) -> Note:
        """Ensure the user wrote the note or holds an edit share of it."""
        note = await self.core.services.note.get_note(note_id)
        if note.created_by == current_user.id:
            return note
        where = {"note_id": note_id, "shared_with_user_id": current_user.id, "permission_level": PermissionLevel.EDIT}
        try:
            has_edit_share = await self.store.count(NOTE_SHARES, where) > 0
        except SchemaMissingError:
            has_edit_share = False
        if not has_edit_share:
            raise AccessDeniedError("Only the author or a collaborator with edit access can change this note")
        return note

    async def ensure_note_author(self, current_user: CurrentUser, note_id: UUID, action: str = "delete") -> Note:
        note = await self.core.services.note.get_note(note_id)
        if note.created_by != current_user.id:
            raise AccessDeniedError(f"Only the author can {action} this note")
        return note
