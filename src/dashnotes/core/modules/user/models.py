from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from dashnotes.core.db import StoreModel
from dashnotes.utils import now


class Role(StrEnum):
    """Executive dashboard a user (or a note) belongs to."""

    CEO = "ceo"
    CTO = "cto"


class User(StoreModel):
    """User domain model with credentials and dashboard role."""

    username: str
    password_hash: str  # bcrypt hash
    role: Role
    created_at: datetime = Field(default_factory=now)


class CurrentUser(BaseModel):
    """Identity of the caller as seen by the notes engine."""

    id: UUID
    role: Role
    is_demo: bool = False
