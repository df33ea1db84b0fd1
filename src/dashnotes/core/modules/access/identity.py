from typing import Protocol

from dashnotes.core.modules.user.models import CurrentUser


class IdentityProvider(Protocol):
    """Source of the caller's identity, consulted once per operation."""

    async def get_current_user(self) -> CurrentUser | None: ...


class StaticIdentity:
    """Identity fixed at construction, e.g. the user behind an authenticated request."""

    def __init__(self, user: CurrentUser | None) -> None:
        self._user = user

    async def get_current_user(self) -> CurrentUser | None:
        return self._user
