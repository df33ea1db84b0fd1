"""Tests for the sharing engine against the in-memory store."""

from uuid import uuid4

import pytest

from dashnotes.core.core import Core
from dashnotes.core.modules.backend.remote import RemoteNoteBackend
from dashnotes.core.modules.notification.models import NotificationType
from dashnotes.core.modules.share.models import PermissionLevel, ShareErrorCode
from dashnotes.core.modules.user.models import CurrentUser, Role
from dashnotes.core.store.schema import NOTE_NOTIFICATIONS, NOTE_SHARES
from dashnotes.errors import AccessDeniedError, FeatureUnavailableError, NotAuthenticatedError


class TestShareRoundTrip:
    """Share and unshare a note between the CTO and CEO dashboards."""

    @pytest.mark.asyncio
    async def test_share_unshare_round_trip(
        self, core: Core, cto_backend: RemoteNoteBackend, ceo_backend: RemoteNoteBackend, ceo: CurrentUser
    ):
        note = await cto_backend.create_note("Q3 roadmap", owner_role=Role.CTO)
        assert note.is_shared is False

        result = await cto_backend.share_note_with_role(note.id, Role.CEO, PermissionLevel.VIEW, "FYI")
        assert result.success
        shares = await cto_backend.get_note_shares(note.id)
        assert [(s.shared_with_role, s.permission_level) for s in shares] == [(Role.CEO, PermissionLevel.VIEW)]
        assert shares[0].shared_with_user_id == ceo.id
        assert shares[0].shared_by_name == "bob"
        assert (await core.services.note.get_note(note.id)).is_shared is True

        assert note.id in [n.id for n in await ceo_backend.list_shared_notes()]

        await cto_backend.unshare_note(note.id)
        assert await cto_backend.get_note_shares(note.id) == []
        refreshed = await core.services.note.get_note(note.id)
        assert refreshed.is_shared is False
        assert refreshed.is_collaborative is False
        assert await ceo_backend.list_shared_notes() == []

        await cto_backend.unshare_note(note.id)

    @pytest.mark.asyncio
    async def test_resharing_updates_in_place(self, core: Core, cto_backend: RemoteNoteBackend, ceo: CurrentUser):
        note = await cto_backend.create_note("Hiring plan")

        await cto_backend.share_note_with_role(note.id, Role.CEO, PermissionLevel.EDIT, "first")
        second = await cto_backend.share_note_with_role(note.id, Role.CEO, PermissionLevel.EDIT, "second")

        shares = await cto_backend.get_note_shares(note.id)
        assert len(shares) == 1
        assert shares[0].share_message == "second"
        assert second.share is not None and second.share.id == shares[0].id
        assert (await core.services.note.get_note(note.id)).is_collaborative is True

    @pytest.mark.asyncio
    async def test_downgrading_permission_clears_collaborative(self, core: Core, cto_backend: RemoteNoteBackend):
        note = await cto_backend.create_note("Pricing")
        await cto_backend.share_note_with_role(note.id, Role.CEO, PermissionLevel.EDIT)
        await cto_backend.share_note_with_role(note.id, Role.CEO, PermissionLevel.VIEW)

        refreshed = await core.services.note.get_note(note.id)
        assert refreshed.is_shared is True
        assert refreshed.is_collaborative is False

    @pytest.mark.asyncio
    async def test_duplicate_shares_are_collapsed(self, core: Core, cto_backend: RemoteNoteBackend, cto: CurrentUser):
        note = await cto_backend.create_note("Vendors")
        for _ in range(2):
            await core.store.insert(
                NOTE_SHARES,
                {
                    "note_id": note.id,
                    "shared_by_user_id": cto.id,
                    "shared_with_user_id": None,
                    "shared_with_role": Role.CEO,
                    "permission_level": PermissionLevel.VIEW,
                    "share_message": None,
                    "created_at": note.created_at,
                },
            )

        result = await cto_backend.share_note_with_role(note.id, Role.CEO, PermissionLevel.VIEW)
        assert result.success
        assert await core.store.count(NOTE_SHARES, {"note_id": note.id}) == 1

    @pytest.mark.asyncio
    async def test_unshare_only_given_recipient(
        self, core: Core, cto_backend: RemoteNoteBackend, ceo: CurrentUser, cto: CurrentUser
    ):
        note = await cto_backend.create_note("Org chart")
        await cto_backend.share_note_with_role(note.id, Role.CEO)
        await cto_backend.share_note_with_role(note.id, Role.CTO)

        await cto_backend.unshare_note(note.id, ceo.id)
        shares = await cto_backend.get_note_shares(note.id)
        assert [share.shared_with_user_id for share in shares] == [cto.id]
        assert (await core.services.note.get_note(note.id)).is_shared is True


class TestShareOutcomes:
    """Tests for failures reported as ShareResult values."""

    @pytest.mark.asyncio
    async def test_missing_note(self, cto_backend: RemoteNoteBackend):
        result = await cto_backend.share_note_with_role(uuid4(), Role.CEO)
        assert result.success is False
        assert result.error == ShareErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_degraded_schema(self, degraded_core: Core):
        user = CurrentUser(id=uuid4(), role=Role.CTO)
        note = await degraded_core.services.note.create_note(user, "Q3 roadmap")

        assert await degraded_core.services.share.get_note_shares(user, note.id) == []
        result = await degraded_core.services.share.share_note_with_role(user, note.id, Role.CEO)
        assert result.success is False
        assert result.error == ShareErrorCode.FEATURE_UNAVAILABLE
        assert "contact your administrator" in (result.message or "")

        with pytest.raises(FeatureUnavailableError):
            result.raise_for_error()
        with pytest.raises(FeatureUnavailableError):
            await degraded_core.services.share.unshare_note(user, note.id)

    @pytest.mark.asyncio
    async def test_requires_current_user(self, core: Core):
        with pytest.raises(NotAuthenticatedError):
            await core.services.share.share_note_with_role(None, uuid4(), Role.CEO)
        with pytest.raises(NotAuthenticatedError):
            await core.services.share.unshare_note(None, uuid4())
        with pytest.raises(NotAuthenticatedError):
            await core.services.share.get_note_shares(None, uuid4())

    @pytest.mark.asyncio
    async def test_role_without_holder_stores_share_without_notification(self, core: Core):
        # Only a CEO exists; nobody holds the CTO role
        ceo = await core.services.user.create_user("solo", "secret-pass", Role.CEO)
        current = CurrentUser(id=ceo.id, role=ceo.role)
        note = await core.services.note.create_note(current, "Nobody to tell")

        result = await core.services.share.share_note_with_role(current, note.id, Role.CTO)
        assert result.success
        assert result.share is not None and result.share.shared_with_user_id is None
        assert await core.store.count(NOTE_NOTIFICATIONS) == 0


class TestShareNotifications:
    """Tests for notifications produced by sharing activity."""

    @pytest.mark.asyncio
    async def test_recipient_is_notified(self, cto_backend: RemoteNoteBackend, ceo_backend: RemoteNoteBackend):
        note = await cto_backend.create_note("Security review", title="Security")
        await cto_backend.share_note_with_role(note.id, Role.CEO, PermissionLevel.VIEW, "Please read")

        notifications = await ceo_backend.list_notifications()
        assert len(notifications) == 1
        assert notifications[0].notification_type == NotificationType.SHARED
        assert notifications[0].metadata["share_message"] == "Please read"
        assert notifications[0].note is not None and notifications[0].note.title == "Security"

    @pytest.mark.asyncio
    async def test_edit_notifies_recipient(self, cto_backend: RemoteNoteBackend, ceo_backend: RemoteNoteBackend):
        note = await cto_backend.create_note("v1")
        await cto_backend.share_note_with_role(note.id, Role.CEO, PermissionLevel.EDIT)

        await cto_backend.update_note(note.id, "v2")
        types = [n.notification_type for n in await ceo_backend.list_notifications()]
        assert types.count(NotificationType.EDITED) == 1

        # The recipient editing does not notify themselves
        await ceo_backend.update_note(note.id, "v3")
        types = [n.notification_type for n in await ceo_backend.list_notifications()]
        assert types.count(NotificationType.EDITED) == 1

    @pytest.mark.asyncio
    async def test_delete_removes_shares_and_notifications(
        self, core: Core, cto_backend: RemoteNoteBackend, ceo_backend: RemoteNoteBackend
    ):
        note = await cto_backend.create_note("Short-lived")
        await cto_backend.share_note_with_role(note.id, Role.CEO)

        await cto_backend.delete_note(note.id)
        assert await core.store.count(NOTE_SHARES) == 0
        assert await ceo_backend.list_notifications() == []
        assert await ceo_backend.list_shared_notes() == []

    @pytest.mark.asyncio
    async def test_create_for_other_role_and_share(self, cto_backend: RemoteNoteBackend, ceo: CurrentUser):
        note = await cto_backend.create_note(
            "Budget needs sign-off",
            created_for_role=Role.CEO,
            share_immediately=True,
            permission_level=PermissionLevel.EDIT,
            share_message="Sign-off please",
        )

        assert note.created_for_role == Role.CEO
        assert note.is_shared is True
        assert note.is_collaborative is True
        shares = await cto_backend.get_note_shares(note.id)
        assert [share.shared_with_user_id for share in shares] == [ceo.id]


class TestShareAuthorization:
    """Only the author decides who a note is shared with."""

    @pytest.mark.asyncio
    async def test_recipient_cannot_escalate_own_share(
        self, core: Core, cto_backend: RemoteNoteBackend, ceo_backend: RemoteNoteBackend, cto: CurrentUser
    ):
        note = await cto_backend.create_note("Board memo")
        await cto_backend.share_note_with_role(note.id, Role.CEO, PermissionLevel.VIEW)

        result = await ceo_backend.share_note_with_role(note.id, Role.CEO, PermissionLevel.EDIT)
        assert result.success is False
        assert result.error == ShareErrorCode.ACCESS_DENIED
        with pytest.raises(AccessDeniedError):
            result.raise_for_error()

        shares = await cto_backend.get_note_shares(note.id)
        assert [(s.permission_level, s.shared_by_user_id) for s in shares] == [(PermissionLevel.VIEW, cto.id)]
        assert (await core.services.note.get_note(note.id)).is_collaborative is False
        with pytest.raises(AccessDeniedError):
            await ceo_backend.update_note(note.id, "overwritten")

        await cto_backend.unshare_note(note.id)
        assert await cto_backend.get_note_shares(note.id) == []
        assert (await core.services.note.get_note(note.id)).is_shared is False

    @pytest.mark.asyncio
    async def test_cannot_share_someone_elses_note(
        self, cto_backend: RemoteNoteBackend, ceo_backend: RemoteNoteBackend
    ):
        note = await cto_backend.create_note("Private to the CTO")

        result = await ceo_backend.share_note_with_role(note.id, Role.CEO)
        assert result.error == ShareErrorCode.ACCESS_DENIED
        assert await ceo_backend.list_shared_notes() == []
        assert await cto_backend.get_note_shares(note.id) == []

    @pytest.mark.asyncio
    async def test_recipient_cannot_unshare(self, cto_backend: RemoteNoteBackend, ceo_backend: RemoteNoteBackend):
        note = await cto_backend.create_note("Stay shared")
        await cto_backend.share_note_with_role(note.id, Role.CEO)

        with pytest.raises(AccessDeniedError):
            await ceo_backend.unshare_note(note.id)
        assert len(await cto_backend.get_note_shares(note.id)) == 1

    @pytest.mark.asyncio
    async def test_shares_visible_to_author_and_recipients_only(
        self, cto_backend: RemoteNoteBackend, ceo_backend: RemoteNoteBackend
    ):
        shared = await cto_backend.create_note("Shared")
        private = await cto_backend.create_note("Private")
        await cto_backend.share_note_with_role(shared.id, Role.CEO)

        assert [s.shared_with_role for s in await ceo_backend.get_note_shares(shared.id)] == [Role.CEO]
        with pytest.raises(AccessDeniedError):
            await ceo_backend.get_note_shares(private.id)
        assert await ceo_backend.get_note_shares(uuid4()) == []
