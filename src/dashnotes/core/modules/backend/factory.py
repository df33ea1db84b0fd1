from dashnotes.core.core import Core
from dashnotes.core.modules.access.identity import IdentityProvider
from dashnotes.core.modules.backend.interface import NoteBackend
from dashnotes.core.modules.backend.remote import RemoteNoteBackend
from dashnotes.core.modules.demo.backend import DemoNoteBackend
from dashnotes.core.modules.user.models import CurrentUser


def create_note_backend(core: Core, identity: IdentityProvider, current_user: CurrentUser) -> NoteBackend:
    """Pick the backend for a caller: demo when no store is configured or the session is a demo session."""
    if core.is_demo_only or current_user.is_demo:
        return DemoNoteBackend(current_user.role, core.demo_storage, identity)
    return RemoteNoteBackend(core, identity)
