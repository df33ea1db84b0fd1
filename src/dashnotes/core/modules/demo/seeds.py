from datetime import UTC, datetime, timedelta
from uuid import NAMESPACE_URL, UUID, uuid5

from dashnotes.core.modules.note.models import Note
from dashnotes.core.modules.user.models import Role

DEMO_NAMESPACE = uuid5(NAMESPACE_URL, "https://dashnotes.local/demo")
SEED_TIMESTAMP = datetime(2025, 1, 1, 9, 0, tzinfo=UTC)


def demo_user_id(role: Role) -> UUID:
    """Stable identity of the demo user for a dashboard role."""
    return uuid5(DEMO_NAMESPACE, f"user:{role}")


def seed_notes(role: Role) -> list[Note]:
    """The two notes every fresh demo dashboard starts with, newest first."""
    label = role.upper()
    author = demo_user_id(role)
    welcome_at = SEED_TIMESTAMP
    sample_at = SEED_TIMESTAMP - timedelta(minutes=5)
    return [
        Note(
            id=uuid5(DEMO_NAMESPACE, f"note:{role}:welcome"),
            title=f"Welcome to the {label} notes",
            content=(
                "This is a demo workspace. Notes you create here are kept on this device only. "
                "Connect a database to share notes with the other dashboard."
            ),
            owner_role=role,
            created_by=author,
            created_at=welcome_at,
            updated_at=welcome_at,
            category="getting-started",
            is_pinned=True,
        ),
        Note(
            id=uuid5(DEMO_NAMESPACE, f"note:{role}:sample"),
            title="Sample: weekly priorities",
            content="1. Review quarterly roadmap\n2. Check SaaS spend against budget\n3. Prepare board update",
            owner_role=role,
            created_by=author,
            created_at=sample_at,
            updated_at=sample_at,
            tags=["sample"],
        ),
    ]
