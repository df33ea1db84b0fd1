from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from dashnotes.core.modules.share.models import PermissionLevel, Share, ShareView
from dashnotes.core.modules.user.models import Role
from dashnotes.web.deps import AppDep, AuthTokenDep
from dashnotes.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["shares"])


class ShareNoteRequest(BaseModel):
    """Request to share a note with the holder of a role."""

    role: Role = Field(..., description="Role to share with")
    permission_level: PermissionLevel = Field(PermissionLevel.VIEW, description="`view` or `edit`")
    message: str | None = Field(None, description="Shown to the recipient in the notification")


@router.get(
    "/notes/{note_id}/shares",
    summary="List note shares",
    operation_id="listNoteShares",
    responses={
        200: {"description": "Active shares of the note"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Neither author nor recipient of the note"},
    },
)
async def list_note_shares(note_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> list[ShareView]:
    return await app.get_note_shares(auth_token, note_id)


@router.post(
    "/notes/{note_id}/shares",
    summary="Share note",
    description="Share a note with a role. Sharing again with the same role updates the existing share.",
    operation_id="shareNote",
    responses={
        200: {"description": "Share created or updated"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Only the author can share the note"},
        404: {"model": ErrorResponse, "description": "Note not found"},
        409: {"model": ErrorResponse, "description": "Not available in demo mode"},
        502: {"model": ErrorResponse, "description": "Store failure"},
        503: {"model": ErrorResponse, "description": "Sharing is not available"},
    },
)
async def share_note(note_id: UUID, share_data: ShareNoteRequest, app: AppDep, auth_token: AuthTokenDep) -> Share:
    return await app.share_note(auth_token, note_id, share_data.role, share_data.permission_level, share_data.message)


@router.delete(
    "/notes/{note_id}/shares",
    summary="Unshare note",
    description="Remove the shares of a note, optionally only the one with a given recipient. Author only.",
    operation_id="unshareNote",
    status_code=204,
    responses={
        204: {"description": "Shares removed"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Only the author can unshare the note"},
        409: {"model": ErrorResponse, "description": "Not available in demo mode"},
        503: {"model": ErrorResponse, "description": "Sharing is not available"},
    },
)
async def unshare_note(
    note_id: UUID,
    app: AppDep,
    auth_token: AuthTokenDep,
    user_id: Annotated[UUID | None, Query(description="Only remove the share with this recipient")] = None,
) -> None:
    await app.unshare_note(auth_token, note_id, user_id)
