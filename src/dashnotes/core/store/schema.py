"""Versioned schema of the authoritative store.

Each migration adds tables and/or columns. The set of applied migrations
determines which tables and columns the store will accept; referencing
anything else raises a ``SchemaMissingError``. Deployments that have not
applied ``0002_note_sharing`` yet run the notes dashboard in degraded mode.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

USERS = "users"
SESSIONS = "sessions"
NOTES = "notes"
NOTE_SHARES = "note_shares"
NOTE_NOTIFICATIONS = "note_notifications"

# Tables whose changes invalidate the notes read model
WATCHED_TABLES = (NOTES, NOTE_SHARES, NOTE_NOTIFICATIONS)

Schema = Mapping[str, frozenset[str]]


@dataclass(frozen=True)
class Index:
    table: str
    keys: tuple[tuple[str, int], ...]
    unique: bool = False


@dataclass(frozen=True)
class Migration:
    name: str
    tables: dict[str, tuple[str, ...]] = field(default_factory=dict)  # New tables with their columns
    columns: dict[str, tuple[str, ...]] = field(default_factory=dict)  # Columns added to existing tables
    indexes: tuple[Index, ...] = ()


MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        name="0001_initial",
        tables={
            USERS: ("id", "username", "password_hash", "role", "created_at"),
            SESSIONS: ("id", "user_id", "auth_token", "created_at"),
            NOTES: ("id", "title", "content", "created_by", "created_at", "updated_at"),
        },
        indexes=(
            Index(USERS, (("username", 1),), unique=True),
            Index(SESSIONS, (("auth_token", 1),), unique=True),
            Index(NOTES, (("created_by", 1), ("created_at", -1))),
        ),
    ),
    Migration(
        name="0002_note_sharing",
        columns={
            NOTES: ("owner_role", "created_for_role", "is_shared", "is_collaborative"),
        },
        tables={
            NOTE_SHARES: (
                "id",
                "note_id",
                "shared_by_user_id",
                "shared_with_user_id",
                "shared_with_role",
                "permission_level",
                "share_message",
                "created_at",
            ),
            NOTE_NOTIFICATIONS: (
                "id",
                "note_id",
                "recipient_user_id",
                "notification_type",
                "is_read",
                "sent_via",
                "metadata",
                "created_at",
            ),
        },
        indexes=(
            Index(NOTE_SHARES, (("note_id", 1), ("shared_with_role", 1)), unique=True),
            Index(NOTE_SHARES, (("shared_with_user_id", 1),)),
            Index(NOTE_NOTIFICATIONS, (("recipient_user_id", 1), ("created_at", -1))),
        ),
    ),
    Migration(
        name="0003_note_organization",
        columns={
            NOTES: ("category", "tags", "is_pinned"),
        },
    ),
)


def build_schema(applied: Iterable[str]) -> Schema:
    """Compute the table → columns mapping produced by the applied migrations."""
    applied_names = set(applied)
    tables: dict[str, set[str]] = {}
    for migration in MIGRATIONS:
        if migration.name not in applied_names:
            continue
        for table, columns in migration.tables.items():
            tables.setdefault(table, set()).update(columns)
        for table, columns in migration.columns.items():
            # Columns on a table that no applied migration created are ignored
            if table in tables:
                tables[table].update(columns)
    return {table: frozenset(columns) for table, columns in tables.items()}


def pending_migrations(applied: Iterable[str], target: str | None = None) -> list[Migration]:
    """Return migrations not yet applied, in order, stopping after ``target`` if given."""
    applied_names = set(applied)
    if target is not None and target not in {m.name for m in MIGRATIONS}:
        raise ValueError(f"Unknown migration: {target}")
    pending = []
    for migration in MIGRATIONS:
        if migration.name not in applied_names:
            pending.append(migration)
        if migration.name == target:
            break
    return pending
