from collections.abc import Iterable
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import Field

from dashnotes.core.db import StoreModel
from dashnotes.core.modules.note.models import Note
from dashnotes.utils import now


class NotificationType(StrEnum):
    """Share-affecting events a recipient is told about."""

    SHARED = "shared"
    EDITED = "edited"
    UNSHARED = "unshared"
    COMMENTED = "commented"


class DeliveryChannel(StrEnum):
    IN_APP = "in-app"
    EMAIL = "email"
    BOTH = "both"


class Notification(StoreModel):
    """Notification row written by the store when a share-affecting event happens."""

    note_id: UUID
    recipient_user_id: UUID
    notification_type: NotificationType
    is_read: bool = False
    sent_via: DeliveryChannel = DeliveryChannel.IN_APP
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=now)
    note: Note | None = None  # Embedded on read; not a stored column


def unread_count(notifications: Iterable[Notification]) -> int:
    return sum(1 for notification in notifications if not notification.is_read)
