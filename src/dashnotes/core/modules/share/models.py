from collections.abc import Iterable
from datetime import datetime
from enum import StrEnum
from typing import Self
from uuid import UUID

from pydantic import BaseModel, Field

from dashnotes.core.db import StoreModel
from dashnotes.core.modules.note.models import NoteFlags
from dashnotes.core.modules.user.models import Role
from dashnotes.errors import AccessDeniedError, FeatureUnavailableError, NotFoundError, StoreError
from dashnotes.utils import now


class PermissionLevel(StrEnum):
    VIEW = "view"
    EDIT = "edit"


class Share(StoreModel):
    """Grant of access to a note for the holder of a role."""

    note_id: UUID
    shared_by_user_id: UUID
    shared_with_user_id: UUID | None = None  # Resolved recipient; None when nobody holds the role
    shared_with_role: Role
    permission_level: PermissionLevel = PermissionLevel.VIEW
    share_message: str | None = None
    created_at: datetime = Field(default_factory=now)


class ShareView(Share):
    """Share enriched with the sharer's display identity."""

    shared_by_name: str | None = None


class ShareErrorCode(StrEnum):
    ACCESS_DENIED = "access_denied"
    FEATURE_UNAVAILABLE = "feature_unavailable"
    NOT_FOUND = "not_found"
    STORE_ERROR = "store_error"


class ShareResult(BaseModel):
    """Outcome of a share request; failures are values, not exceptions."""

    success: bool
    share: Share | None = None
    error: ShareErrorCode | None = None
    message: str | None = None

    @classmethod
    def ok(cls, share: Share) -> Self:
        return cls(success=True, share=share)

    @classmethod
    def fail(cls, error: ShareErrorCode, message: str) -> Self:
        return cls(success=False, error=error, message=message)

    def raise_for_error(self) -> Share:
        """Return the share, or raise the typed error this result carries."""
        if self.success and self.share is not None:
            return self.share
        message = self.message or "Failed to share note"
        if self.error == ShareErrorCode.FEATURE_UNAVAILABLE:
            raise FeatureUnavailableError(message)
        if self.error == ShareErrorCode.NOT_FOUND:
            raise NotFoundError(message)
        if self.error == ShareErrorCode.ACCESS_DENIED:
            raise AccessDeniedError(message)
        raise StoreError(message)


def derive_flags(shares: Iterable[Share]) -> NoteFlags:
    """Compute a note's sharing flags from its active shares."""
    shares = list(shares)
    return NoteFlags(
        is_shared=len(shares) > 0,
        is_collaborative=any(share.permission_level == PermissionLevel.EDIT for share in shares),
    )
