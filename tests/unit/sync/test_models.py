"""Tests for NotesState."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

from dashnotes.core.modules.note.models import Note
from dashnotes.core.modules.notification.models import Notification, NotificationType
from dashnotes.core.modules.sync.models import NotesState, ViewMode
from dashnotes.core.modules.user.models import Role

START = datetime(2025, 6, 1, 8, 0, tzinfo=UTC)


def make_note(
    content: str, minutes: int, *, title: str | None = None, is_pinned: bool = False, category: str | None = None
) -> Note:
    created = START + timedelta(minutes=minutes)
    return Note(
        title=title,
        content=content,
        owner_role=Role.CTO,
        created_by=uuid4(),
        created_at=created,
        updated_at=created,
        is_pinned=is_pinned,
        category=category,
    )


class TestVisibleNotes:
    """Tests for NotesState.visible_notes."""

    def test_pinned_first_then_newest(self):
        old_pinned = make_note("old pinned", 0, is_pinned=True)
        newest = make_note("newest", 30)
        middle = make_note("middle", 10)
        state = NotesState(notes=[newest, old_pinned, middle])

        assert [note.content for note in state.visible_notes()] == ["old pinned", "newest", "middle"]

    def test_view_modes(self):
        own = make_note("own", 0)
        shared = make_note("shared", 1)
        state = NotesState(notes=[own], shared_notes=[shared, own])

        assert [n.content for n in state.visible_notes(ViewMode.PERSONAL)] == ["own"]
        assert [n.content for n in state.visible_notes(ViewMode.SHARED)] == ["shared", "own"]
        assert sorted(n.content for n in state.visible_notes(ViewMode.ALL)) == ["own", "shared"]

    def test_search_matches_title_and_content(self):
        state = NotesState(
            notes=[
                make_note("Kubernetes migration", 0),
                make_note("unrelated", 1, title="Cloud costs"),
                make_note("Board deck", 2),
            ]
        )

        assert [n.content for n in state.visible_notes(search="KUBER")] == ["Kubernetes migration"]
        assert [n.content for n in state.visible_notes(search="cloud")] == ["unrelated"]
        assert len(state.visible_notes(search="   ")) == 3

    def test_category_filter(self):
        state = NotesState(
            notes=[make_note("Renewals", 0, category="sales"), make_note("Outage review", 1, category="ops")],
            shared_notes=[make_note("Pipeline", 2, category="sales")],
        )

        assert [n.content for n in state.visible_notes(category="sales")] == ["Pipeline", "Renewals"]
        assert [n.content for n in state.visible_notes(ViewMode.PERSONAL, category="sales")] == ["Renewals"]
        assert len(state.visible_notes(category=None)) == 3


class TestUnreadCount:
    def test_derived_from_notifications(self):
        def notification(is_read: bool) -> Notification:
            return Notification(
                note_id=uuid4(),
                recipient_user_id=uuid4(),
                notification_type=NotificationType.EDITED,
                is_read=is_read,
            )

        state = NotesState(notifications=[notification(False), notification(True)])
        assert state.unread_count == 1
        assert state.model_dump()["unread_count"] == 1
