from uuid import UUID

import bcrypt
import structlog

from dashnotes.core.core import Service
from dashnotes.core.modules.user.models import Role, User
from dashnotes.core.modules.user.validators import validate_password, validate_username
from dashnotes.core.store import Store
from dashnotes.core.store.schema import USERS
from dashnotes.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Manages users with in-memory cache."""

    def __init__(self, store: Store | None) -> None:
        super().__init__(store)
        self._users: dict[UUID, User] = {}

    async def on_start(self) -> None:
        """Load the user cache."""
        if not self.has_store:
            return
        await self.update_all_users_cache()
        if self.core.config.bootstrap_password:
            await self.ensure_role_users_exist(self.core.config.bootstrap_password)
        logger.debug("user_service_started", user_count=len(self._users))

    def find_user(self, user_id: UUID | None) -> User | None:
        if user_id is None:
            return None
        return self._users.get(user_id)

    def has_username(self, username: str) -> bool:
        """Check if username exists."""
        return any(user.username == username for user in self._users.values())

    def get_all_users(self) -> list[User]:
        """Get all users from cache."""
        return list(self._users.values())

    def get_designated_user(self, role: Role) -> User | None:
        """Return the user who receives role-level shares: the earliest-created holder of the role."""
        holders = [user for user in self._users.values() if user.role == role]
        if not holders:
            return None
        return min(holders, key=lambda user: user.created_at)

    async def ensure_role_users_exist(self, password: str) -> None:
        """Create a default account for every role nobody holds yet, named after the role."""
        for role in Role:
            if self.get_designated_user(role) is None and not self.has_username(role.value):
                await self.create_user(role.value, password, role)

    async def create_user(self, username: str, password: str, role: Role) -> User:
        """Create user with hashed password."""
        validate_username(username)
        if self.has_username(username):
            raise ValidationError(f"User '{username}' already exists")

        validate_password(password)
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
        row = await self.store.insert(USERS, User(username=username, password_hash=password_hash, role=role).to_row())
        logger.info("user_created", username=username, role=role)
        return await self.update_user_cache(row["id"])

    def verify_password(self, username: str, password: str) -> bool:
        """Verify password against stored hash."""
        user = next((u for u in self._users.values() if u.username == username), None)
        if user is None:
            return False
        return bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8"))

    def get_user_by_username(self, username: str) -> User:
        """Get user by username from cache."""
        user = next((u for u in self._users.values() if u.username == username), None)
        if user is None:
            raise NotFoundError(f"User '{username}' not found")
        return user

    async def update_all_users_cache(self) -> None:
        """Reload all users cache from the store."""
        users = User.list_rows(await self.store.select(USERS))
        self._users = {user.id: user for user in users}

    async def update_user_cache(self, user_id: UUID) -> User:
        """Reload a specific user cache from the store."""
        rows = await self.store.select(USERS, {"id": user_id})
        if not rows:
            raise NotFoundError(f"User '{user_id}' not found")
        self._users[user_id] = User.model_validate(rows[0])
        return self._users[user_id]
