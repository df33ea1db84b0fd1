from uuid import UUID

import structlog

from dashnotes.core.core import Service
from dashnotes.core.modules.note.models import NoteFlags
from dashnotes.core.modules.share.models import (
    PermissionLevel,
    Share,
    ShareErrorCode,
    ShareResult,
    ShareView,
    derive_flags,
)
from dashnotes.core.modules.user.models import CurrentUser, Role
from dashnotes.core.store.schema import NOTE_SHARES
from dashnotes.errors import (
    AccessDeniedError,
    FeatureUnavailableError,
    NotAuthenticatedError,
    NotFoundError,
    SchemaMissingError,
    StoreError,
)

logger = structlog.get_logger(__name__)


class SharingEngine(Service):
    """Shares notes with a role and keeps the note's derived flags consistent.

    Only a note's author may share or unshare it. Notifications are written
    by store triggers when a share row is inserted, updated or deleted.
    """

    async def share_note_with_role(
        self,
        current_user: CurrentUser | None,
        note_id: UUID,
        target_role: Role,
        permission_level: PermissionLevel = PermissionLevel.VIEW,
        message: str | None = None,
    ) -> ShareResult:
        """Create or update the note's share for ``target_role``.

        Returns a failed ShareResult instead of raising when the sharing
        schema is missing, the note does not exist, the caller did not write
        it or the store fails.
        """
        if current_user is None:
            raise NotAuthenticatedError

        try:
            existing = Share.list_rows(
                await self.store.select(NOTE_SHARES, {"note_id": note_id, "shared_with_role": target_role})
            )
            await self.core.services.access.ensure_note_author(current_user, note_id, action="share")
            recipient = self.core.services.user.get_designated_user(target_role)
            recipient_id = recipient.id if recipient else None

            if existing:
                share = await self._update_share(existing, current_user, recipient_id, permission_level, message)
            else:
                share = Share(
                    note_id=note_id,
                    shared_by_user_id=current_user.id,
                    shared_with_user_id=recipient_id,
                    shared_with_role=target_role,
                    permission_level=permission_level,
                    share_message=message or None,
                )
                await self.store.insert(NOTE_SHARES, share.to_row(), actor_id=current_user.id)

            flags = await self.sync_flags(note_id)
        except SchemaMissingError as exc:
            logger.warning("note_sharing_unavailable", missing=exc.table, note_id=note_id)
            return ShareResult.fail(ShareErrorCode.FEATURE_UNAVAILABLE, str(FeatureUnavailableError()))
        except FeatureUnavailableError as exc:
            return ShareResult.fail(ShareErrorCode.FEATURE_UNAVAILABLE, str(exc))
        except NotFoundError as exc:
            return ShareResult.fail(ShareErrorCode.NOT_FOUND, str(exc))
        except AccessDeniedError as exc:
            logger.warning("note_share_denied", note_id=note_id, user_id=current_user.id)
            return ShareResult.fail(ShareErrorCode.ACCESS_DENIED, str(exc))
        except StoreError as exc:
            logger.warning("note_share_failed", note_id=note_id, error=str(exc))
            return ShareResult.fail(ShareErrorCode.STORE_ERROR, str(exc))

        if recipient_id is None:
            logger.warning("share_recipient_unresolved", note_id=note_id, role=target_role)
        logger.info(
            "note_shared",
            note_id=note_id,
            role=target_role,
            permission_level=permission_level,
            updated=bool(existing),
            is_collaborative=flags.is_collaborative,
        )
        return ShareResult.ok(share)

    async def _update_share(
        self,
        existing: list[Share],
        current_user: CurrentUser,
        recipient_id: UUID | None,
        permission_level: PermissionLevel,
        message: str | None,
    ) -> Share:
        """Update the first share in place and drop any duplicates for the same role."""
        primary, duplicates = existing[0], existing[1:]
        if duplicates:
            logger.warning("duplicate_shares_removed", note_id=primary.note_id, count=len(duplicates))
            for duplicate in duplicates:
                await self.store.delete(NOTE_SHARES, {"id": duplicate.id}, actor_id=current_user.id)

        rows = await self.store.update(
            NOTE_SHARES,
            {"id": primary.id},
            {
                "shared_with_user_id": recipient_id,
                "permission_level": permission_level,
                "share_message": message or None,
            },
            actor_id=current_user.id,
        )
        return Share.model_validate(rows[0])

    async def unshare_note(self, current_user: CurrentUser | None, note_id: UUID, user_id: UUID | None = None) -> None:
        """Remove the note's shares, optionally only the one for ``user_id``.

        Only the author may unshare. Idempotent: a note or share that no
        longer exists is not an error.
        """
        if current_user is None:
            raise NotAuthenticatedError

        try:
            await self.core.services.access.ensure_note_author(current_user, note_id, action="unshare")
        except NotFoundError:
            return
        where: dict[str, object] = {"note_id": note_id}
        if user_id is not None:
            where["shared_with_user_id"] = user_id
        try:
            removed = await self.store.delete(NOTE_SHARES, where, actor_id=current_user.id)
            flags = await self.sync_flags(note_id)
        except SchemaMissingError as exc:
            raise FeatureUnavailableError from exc
        logger.info("note_unshared", note_id=note_id, user_id=user_id, removed=len(removed), is_shared=flags.is_shared)

    async def get_note_shares(self, current_user: CurrentUser | None, note_id: UUID) -> list[ShareView]:
        """Active shares of a note with the sharer's name; empty when sharing is unavailable.

        Visible to the note's author and to its share recipients.
        """
        if current_user is None:
            raise NotAuthenticatedError

        try:
            note = await self.core.services.note.get_note(note_id)
        except NotFoundError:
            return []
        try:
            shares = Share.list_rows(await self.store.select(NOTE_SHARES, {"note_id": note_id}, order_by="created_at"))
        except SchemaMissingError as exc:
            logger.warning("note_shares_unavailable", missing=exc.table, note_id=note_id)
            return []

        recipients = {share.shared_with_user_id for share in shares}
        if note.created_by != current_user.id and current_user.id not in recipients:
            raise AccessDeniedError("Only the author or a recipient can see who this note is shared with")

        users = self.core.services.user
        views = []
        for share in shares:
            sharer = users.find_user(share.shared_by_user_id)
            views.append(ShareView(**share.model_dump(), shared_by_name=sharer.username if sharer else None))
        return views

    async def sync_flags(self, note_id: UUID) -> NoteFlags:
        """Recompute and persist ``is_shared``/``is_collaborative`` from the note's shares."""
        shares = Share.list_rows(await self.store.select(NOTE_SHARES, {"note_id": note_id}))
        flags = derive_flags(shares)
        await self.core.services.note.set_flags(note_id, flags)
        return flags
