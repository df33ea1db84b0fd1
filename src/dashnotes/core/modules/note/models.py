from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from dashnotes.core.db import StoreModel
from dashnotes.core.modules.user.models import Role
from dashnotes.utils import now


class Note(StoreModel):
    """Note on a CEO or CTO dashboard, optionally shared with the other role."""

    title: str | None = None
    content: str
    owner_role: Role  # Dashboard the note belongs to
    created_for_role: Role | None = None  # Set when authored by one role for the other
    is_shared: bool = False  # Derived: at least one active share
    is_collaborative: bool = False  # Derived: some active share grants edit
    created_by: UUID
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_pinned: bool = False


class NoteFlags(BaseModel):
    """Denormalized sharing flags stored on a note."""

    is_shared: bool = False
    is_collaborative: bool = False
