"""Shared pytest fixtures."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from dashnotes.config import Config
from dashnotes.core.core import Core
from dashnotes.core.modules.access.identity import StaticIdentity
from dashnotes.core.modules.backend.remote import RemoteNoteBackend
from dashnotes.core.modules.demo.backend import DemoNoteBackend
from dashnotes.core.modules.demo.seeds import demo_user_id
from dashnotes.core.modules.demo.storage import MemoryLocalStorage
from dashnotes.core.modules.user.models import CurrentUser, Role
from dashnotes.core.store import MemoryStore

PASSWORD = "secret-pass"


def make_config(**overrides: object) -> Config:
    """Config for tests, independent of the environment and any .env file."""
    values: dict[str, object] = {"database_url": "memory://", "auto_migrate": True, "_env_file": None}
    values.update(overrides)
    return Config(**values)  # type: ignore[arg-type]


async def start_core(store: MemoryStore, **overrides: object) -> Core:
    core = Core(make_config(**overrides), store)
    await core.on_start()
    return core


@pytest_asyncio.fixture
async def store() -> MemoryStore:
    """In-memory store with every migration applied."""
    memory_store = MemoryStore()
    await memory_store.migrate()
    return memory_store


@pytest_asyncio.fixture
async def degraded_store() -> MemoryStore:
    """In-memory store where only the initial migration has run: no sharing tables or role columns."""
    memory_store = MemoryStore()
    await memory_store.migrate("0001_initial")
    return memory_store


@pytest_asyncio.fixture
async def core(store: MemoryStore) -> AsyncGenerator[Core]:
    started = await start_core(store)
    yield started
    await started.on_stop()


@pytest_asyncio.fixture
async def degraded_core(degraded_store: MemoryStore) -> AsyncGenerator[Core]:
    started = await start_core(degraded_store, auto_migrate=False)
    yield started
    await started.on_stop()


async def create_current_user(core: Core, username: str, role: Role) -> CurrentUser:
    user = await core.services.user.create_user(username, PASSWORD, role)
    return CurrentUser(id=user.id, role=user.role)


@pytest_asyncio.fixture
async def ceo(core: Core) -> CurrentUser:
    return await create_current_user(core, "alice", Role.CEO)


@pytest_asyncio.fixture
async def cto(core: Core) -> CurrentUser:
    return await create_current_user(core, "bob", Role.CTO)


@pytest.fixture
def ceo_backend(core: Core, ceo: CurrentUser) -> RemoteNoteBackend:
    return RemoteNoteBackend(core, StaticIdentity(ceo))


@pytest.fixture
def cto_backend(core: Core, cto: CurrentUser) -> RemoteNoteBackend:
    return RemoteNoteBackend(core, StaticIdentity(cto))


@pytest.fixture
def demo_storage() -> MemoryLocalStorage:
    return MemoryLocalStorage()


@pytest.fixture
def demo_ceo_backend(demo_storage: MemoryLocalStorage) -> DemoNoteBackend:
    identity = StaticIdentity(CurrentUser(id=demo_user_id(Role.CEO), role=Role.CEO, is_demo=True))
    return DemoNoteBackend(Role.CEO, demo_storage, identity)


@pytest.fixture
def make_user(core: Core):
    """Factory creating additional users in the core's store."""

    async def factory(username: str, role: Role) -> CurrentUser:
        return await create_current_user(core, username, role)

    return factory
