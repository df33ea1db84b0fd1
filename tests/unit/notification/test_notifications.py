"""Tests for notification read-state tracking."""

from uuid import uuid4

import pytest

from dashnotes.core.core import Core
from dashnotes.core.modules.backend.remote import RemoteNoteBackend
from dashnotes.core.modules.notification.models import Notification, NotificationType, unread_count
from dashnotes.core.modules.user.models import CurrentUser, Role
from dashnotes.errors import FeatureUnavailableError


async def share_notes(backend: RemoteNoteBackend, count: int) -> None:
    for i in range(count):
        note = await backend.create_note(f"note {i}")
        await backend.share_note_with_role(note.id, Role.CEO)


class TestMarkAsRead:
    """Tests for NotificationService."""

    @pytest.mark.asyncio
    async def test_mark_all_drives_unread_to_zero(
        self, cto_backend: RemoteNoteBackend, ceo_backend: RemoteNoteBackend
    ):
        await share_notes(cto_backend, 3)
        assert unread_count(await ceo_backend.list_notifications()) == 3

        await ceo_backend.mark_all_notifications_as_read()
        assert unread_count(await ceo_backend.list_notifications()) == 0

        await ceo_backend.mark_all_notifications_as_read()
        assert unread_count(await ceo_backend.list_notifications()) == 0

    @pytest.mark.asyncio
    async def test_mark_all_only_affects_user(
        self, core: Core, ceo: CurrentUser, cto: CurrentUser, cto_backend: RemoteNoteBackend
    ):
        await share_notes(cto_backend, 2)
        assert await core.services.notification.mark_all_notifications_as_read(cto.id) == 0
        assert await core.services.notification.mark_all_notifications_as_read(ceo.id) == 2

    @pytest.mark.asyncio
    async def test_mark_one(self, cto_backend: RemoteNoteBackend, ceo_backend: RemoteNoteBackend):
        await share_notes(cto_backend, 2)
        first = (await ceo_backend.list_notifications())[0]

        await ceo_backend.mark_notification_as_read(first.id)
        await ceo_backend.mark_notification_as_read(first.id)

        notifications = await ceo_backend.list_notifications()
        assert unread_count(notifications) == 1
        assert next(n for n in notifications if n.id == first.id).is_read is True

    @pytest.mark.asyncio
    async def test_mark_one_ignores_other_users_notification(
        self, cto_backend: RemoteNoteBackend, ceo_backend: RemoteNoteBackend
    ):
        await share_notes(cto_backend, 1)
        notification = (await ceo_backend.list_notifications())[0]

        await cto_backend.mark_notification_as_read(notification.id)
        assert unread_count(await ceo_backend.list_notifications()) == 1

    @pytest.mark.asyncio
    async def test_list_respects_limit(self, core: Core, cto_backend: RemoteNoteBackend, ceo: CurrentUser):
        await share_notes(cto_backend, 3)
        assert len(await core.services.note.list_notifications(ceo.id, limit=2)) == 2

    @pytest.mark.asyncio
    async def test_unavailable_without_schema(self, degraded_core: Core):
        with pytest.raises(FeatureUnavailableError):
            await degraded_core.services.notification.mark_notification_as_read(uuid4(), uuid4())
        with pytest.raises(FeatureUnavailableError):
            await degraded_core.services.notification.mark_all_notifications_as_read(uuid4())


class TestUnreadCount:
    """Tests for unread_count function."""

    def test_counts_unread_only(self):
        def make(is_read: bool) -> Notification:
            return Notification(
                note_id=uuid4(),
                recipient_user_id=uuid4(),
                notification_type=NotificationType.SHARED,
                is_read=is_read,
            )

        assert unread_count([]) == 0
        assert unread_count([make(False), make(True), make(False)]) == 2
