from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from dashnotes.core.modules.note.models import Note
from dashnotes.core.modules.share.models import PermissionLevel
from dashnotes.core.modules.sync.models import NotesState, ViewMode
from dashnotes.core.modules.user.models import Role
from dashnotes.web.deps import AppDep, AuthTokenDep
from dashnotes.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["notes"])


class NotesResponse(BaseModel):
    """Dashboard notes state together with the notes to display for the requested view."""

    state: NotesState
    visible_notes: list[Note] = Field(
        ..., description="Filtered by view, category and search; pinned first, then newest"
    )


class CreateNoteRequest(BaseModel):
    """Request to create a new note."""

    content: str = Field(..., description="Note body; must not be empty")
    title: str | None = Field(None, description="Optional title")
    dashboard_role: Role | None = Field(None, description="Dashboard the note belongs to; defaults to the caller's")
    created_for_role: Role | None = Field(None, description="Role the note is written for")
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_pinned: bool = False
    share_immediately: bool = Field(False, description="Share with `created_for_role` right after creating")
    permission_level: PermissionLevel = PermissionLevel.VIEW
    share_message: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "content": "Please review the Q3 infrastructure budget before Friday.",
                    "title": "Q3 budget",
                    "created_for_role": "cto",
                    "share_immediately": True,
                    "permission_level": "edit",
                }
            ]
        }
    }


class UpdateNoteRequest(BaseModel):
    """Request to replace a note's content and optionally its title."""

    content: str
    title: str | None = None


@router.get(
    "/notes",
    summary="Dashboard notes",
    description="Own notes, notes shared with the caller and recent notifications, read as one refresh. "
    "Collections that cannot be loaded come back empty and are listed in `state.warnings`.",
    operation_id="getNotes",
    responses={
        200: {"description": "Notes state"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_notes(
    app: AppDep,
    auth_token: AuthTokenDep,
    dashboard_role: Annotated[Role | None, Query(description="Dashboard to read; defaults to the caller's")] = None,
    view: Annotated[ViewMode, Query(description="Which notes to display")] = ViewMode.ALL,
    search: Annotated[str, Query(description="Case-insensitive match on title and content")] = "",
    category: Annotated[str | None, Query(description="Only notes in this category")] = None,
) -> NotesResponse:
    state = await app.get_notes_state(auth_token, dashboard_role)
    return NotesResponse(state=state, visible_notes=state.visible_notes(view, search, category))


@router.post(
    "/notes",
    summary="Create note",
    operation_id="createNote",
    status_code=201,
    responses={
        201: {"description": "Note created"},
        400: {"model": ErrorResponse, "description": "Empty content"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        409: {"model": ErrorResponse, "description": "Sharing requested in demo mode"},
        503: {"model": ErrorResponse, "description": "Sharing is not available"},
    },
)
async def create_note(note_data: CreateNoteRequest, app: AppDep, auth_token: AuthTokenDep) -> Note:
    return await app.create_note(
        auth_token,
        note_data.content,
        title=note_data.title,
        dashboard_role=note_data.dashboard_role,
        created_for_role=note_data.created_for_role,
        category=note_data.category,
        tags=note_data.tags,
        is_pinned=note_data.is_pinned,
        share_immediately=note_data.share_immediately,
        permission_level=note_data.permission_level,
        share_message=note_data.share_message,
    )


@router.patch(
    "/notes/{note_id}",
    summary="Update note",
    operation_id="updateNote",
    status_code=204,
    responses={
        204: {"description": "Note updated"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "No edit access to the note"},
        404: {"model": ErrorResponse, "description": "Note not found"},
    },
)
async def update_note(note_id: UUID, note_data: UpdateNoteRequest, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.update_note(auth_token, note_id, note_data.content, note_data.title)


@router.delete(
    "/notes/{note_id}",
    summary="Delete note",
    description="Delete a note together with its shares and notifications. Deleting a missing note succeeds.",
    operation_id="deleteNote",
    status_code=204,
    responses={
        204: {"description": "Note deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Only the author can delete the note"},
    },
)
async def delete_note(note_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_note(auth_token, note_id)
