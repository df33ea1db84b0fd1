from uuid import UUID

import structlog

from dashnotes.core.core import Service
from dashnotes.core.store.schema import NOTE_NOTIFICATIONS
from dashnotes.errors import FeatureUnavailableError, SchemaMissingError

logger = structlog.get_logger(__name__)


class NotificationService(Service):
    """Read-state tracking for notifications; creation belongs to the store triggers."""

    async def mark_notification_as_read(self, notification_id: UUID, user_id: UUID) -> None:
        """Mark one of the user's notifications as read; other users' notifications are left untouched."""
        where = {"id": notification_id, "recipient_user_id": user_id}
        try:
            await self.store.update(NOTE_NOTIFICATIONS, where, {"is_read": True})
        except SchemaMissingError as exc:
            raise FeatureUnavailableError from exc

    async def mark_all_notifications_as_read(self, user_id: UUID) -> int:
        """Mark every unread notification of the user as read and return how many changed."""
        try:
            updated = await self.store.update(
                NOTE_NOTIFICATIONS, {"recipient_user_id": user_id, "is_read": False}, {"is_read": True}
            )
        except SchemaMissingError as exc:
            raise FeatureUnavailableError from exc
        logger.debug("notifications_marked_read", user_id=user_id, count=len(updated))
        return len(updated)
