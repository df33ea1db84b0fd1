"""Session management models."""

from datetime import datetime
from typing import NewType
from uuid import UUID

from pydantic import Field

from dashnotes.core.db import StoreModel
from dashnotes.utils import now

AuthToken = NewType("AuthToken", str)


class Session(StoreModel):
    """User authentication session.

    Indexed on auth_token (unique).
    """

    user_id: UUID
    auth_token: str
    created_at: datetime = Field(default_factory=now)
