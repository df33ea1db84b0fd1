"""Store-side triggers.

These run inside the store after each committed write, the way database
triggers would: notifications are a side effect of share and note mutations
and are never written by the client-side engine.
"""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

import structlog

from dashnotes.core.modules.notification.models import DeliveryChannel, NotificationType
from dashnotes.core.store.schema import NOTE_NOTIFICATIONS, NOTE_SHARES, NOTES
from dashnotes.core.store.types import Operation, Row, TriggerEvent
from dashnotes.utils import now

if TYPE_CHECKING:
    from dashnotes.core.store.base import Store

logger = structlog.get_logger(__name__)

Trigger = Callable[["Store", TriggerEvent], Awaitable[None]]


async def _notify(
    store: "Store",
    note_id: UUID,
    recipient_id: UUID,
    notification_type: NotificationType,
    metadata: dict[str, Any],
) -> None:
    await store.insert(
        NOTE_NOTIFICATIONS,
        {
            "id": uuid4(),
            "note_id": note_id,
            "recipient_user_id": recipient_id,
            "notification_type": notification_type,
            "is_read": False,
            "sent_via": DeliveryChannel.IN_APP,
            "metadata": metadata,
            "created_at": now(),
        },
    )


def _share_metadata(share: Row) -> dict[str, Any]:
    shared_by = share.get("shared_by_user_id")
    return {
        "permission_level": share.get("permission_level"),
        "share_message": share.get("share_message"),
        "shared_by_user_id": str(shared_by) if shared_by else None,
        "shared_with_role": share.get("shared_with_role"),
    }


async def notify_share_recipient(store: "Store", event: TriggerEvent) -> None:
    """Inserting or updating a share notifies its recipient."""
    share = event.new
    if share is None or share.get("shared_with_user_id") is None:
        return
    await _notify(
        store, share["note_id"], share["shared_with_user_id"], NotificationType.SHARED, _share_metadata(share)
    )


async def notify_share_removed(store: "Store", event: TriggerEvent) -> None:
    share = event.old
    if share is None or share.get("shared_with_user_id") is None:
        return
    await _notify(
        store, share["note_id"], share["shared_with_user_id"], NotificationType.UNSHARED, _share_metadata(share)
    )


async def notify_note_edited(store: "Store", event: TriggerEvent) -> None:
    """Content or title changes notify every share recipient except the editor."""
    old, new = event.old, event.new
    if old is None or new is None:
        return
    if old.get("content") == new.get("content") and old.get("title") == new.get("title"):
        return

    shares = await store.select(NOTE_SHARES, {"note_id": new["id"]})
    recipients = {share["shared_with_user_id"] for share in shares} - {None, event.actor_id}
    for recipient_id in recipients:
        await _notify(
            store,
            new["id"],
            recipient_id,
            NotificationType.EDITED,
            {"edited_by_user_id": str(event.actor_id) if event.actor_id else None},
        )


async def cascade_note_shares(store: "Store", event: TriggerEvent) -> None:
    if event.old is not None:
        await store.delete(NOTE_SHARES, {"note_id": event.old["id"]})


async def cascade_note_notifications(store: "Store", event: TriggerEvent) -> None:
    if event.old is not None:
        await store.delete(NOTE_NOTIFICATIONS, {"note_id": event.old["id"]})


# (table, operation, trigger) in execution order; share cascade runs before
# the notification cascade so the "unshared" rows it produces are removed too.
DEFAULT_TRIGGERS: tuple[tuple[str, Operation, Trigger], ...] = (
    (NOTE_SHARES, "insert", notify_share_recipient),
    (NOTE_SHARES, "update", notify_share_recipient),
    (NOTE_SHARES, "delete", notify_share_removed),
    (NOTES, "update", notify_note_edited),
    (NOTES, "delete", cascade_note_shares),
    (NOTES, "delete", cascade_note_notifications),
)
