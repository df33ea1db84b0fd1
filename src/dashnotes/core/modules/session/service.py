import secrets
from uuid import UUID

import structlog

from dashnotes.core.core import Service
from dashnotes.core.modules.demo.seeds import demo_user_id
from dashnotes.core.modules.session.models import AuthToken, Session
from dashnotes.core.modules.user.models import CurrentUser, Role
from dashnotes.core.store import Store
from dashnotes.core.store.schema import SESSIONS
from dashnotes.errors import NotAuthenticatedError

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Service for managing user sessions and in-memory demo sessions."""

    def __init__(self, store: Store | None) -> None:
        super().__init__(store)
        self._authenticated_users: dict[AuthToken, CurrentUser] = {}
        self._demo_sessions: dict[AuthToken, CurrentUser] = {}

    async def create_session(self, user_id: UUID) -> AuthToken:
        auth_token = AuthToken(secrets.token_urlsafe(32))
        new_session = Session(user_id=user_id, auth_token=auth_token)
        await self.store.insert(SESSIONS, new_session.to_row())
        return auth_token

    def create_demo_session(self, role: Role) -> AuthToken:
        """Start a demo session for a dashboard role; it lives only in this process."""
        auth_token = AuthToken(secrets.token_urlsafe(32))
        self._demo_sessions[auth_token] = CurrentUser(id=demo_user_id(role), role=role, is_demo=True)
        logger.info("demo_session_created", role=role)
        return auth_token

    async def get_authenticated_user(self, auth_token: AuthToken) -> CurrentUser:
        if auth_token in self._demo_sessions:
            return self._demo_sessions[auth_token]

        # Check cache first
        if auth_token in self._authenticated_users:
            return self._authenticated_users[auth_token]

        if not self.has_store:
            raise NotAuthenticatedError("Invalid or expired session")

        rows = await self.store.select(SESSIONS, {"auth_token": auth_token})
        if not rows:
            raise NotAuthenticatedError("Invalid or expired session")

        user = self.core.services.user.find_user(rows[0]["user_id"])
        if user is None:
            raise NotAuthenticatedError("Invalid or expired session")

        current_user = CurrentUser(id=user.id, role=user.role)
        self._authenticated_users[auth_token] = current_user
        return current_user

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        try:
            await self.get_authenticated_user(auth_token)
        except NotAuthenticatedError:
            return False
        return True

    async def invalidate_session(self, auth_token: AuthToken) -> None:
        """Invalidate a session by removing it from the store."""
        self._authenticated_users.pop(auth_token, None)
        if self._demo_sessions.pop(auth_token, None) is not None:
            return
        await self.store.delete(SESSIONS, {"auth_token": auth_token})
