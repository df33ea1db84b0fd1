from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import cast

import structlog

from dashnotes.config import Config
from dashnotes.core.modules.demo.storage import LocalStorage, create_local_storage
from dashnotes.core.store import Store, create_store
from dashnotes.errors import NotSupportedInDemoModeError

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with direct store access."""

    def __init__(self, store: Store | None) -> None:
        self._store = store
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def has_store(self) -> bool:
        return self._store is not None

    @property
    def store(self) -> Store:
        """Get the authoritative store; absent when running in demo mode."""
        if self._store is None:
            raise NotSupportedInDemoModeError("No store is configured; the application runs in demo mode")
        return self._store

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from dashnotes.core.modules.access.service import AccessService  # noqa: PLC0415
    from dashnotes.core.modules.note.repository import NoteRepository  # noqa: PLC0415
    from dashnotes.core.modules.notification.service import NotificationService  # noqa: PLC0415
    from dashnotes.core.modules.session.service import SessionService  # noqa: PLC0415
    from dashnotes.core.modules.share.service import SharingEngine  # noqa: PLC0415
    from dashnotes.core.modules.user.service import UserService  # noqa: PLC0415

    user: UserService
    session: SessionService
    access: AccessService
    note: NoteRepository
    share: SharingEngine
    notification: NotificationService

    def __init__(self, store: Store | None) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._store = store

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for initialization - users must be loaded before sessions resolve
        service_configs = [
            ("user", "dashnotes.core.modules.user.service", "UserService"),
            ("session", "dashnotes.core.modules.session.service", "SessionService"),
            ("access", "dashnotes.core.modules.access.service", "AccessService"),
            ("note", "dashnotes.core.modules.note.repository", "NoteRepository"),
            ("share", "dashnotes.core.modules.share.service", "SharingEngine"),
            ("notification", "dashnotes.core.modules.notification.service", "NotificationService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(store)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, store, demo storage and all service instances."""

    config: Config
    store: Store | None
    demo_storage: LocalStorage
    services: Services

    def __init__(self, config: Config, store: Store | None = None) -> None:
        """Initialize core with config and store, and auto-register services."""
        self.config = config
        self.store = store if store is not None else create_store(config.database_url)
        self.demo_storage = create_local_storage(config.demo_storage_path)
        self.services = Services(self.store)
        self.services.set_core(self)

    @property
    def is_demo_only(self) -> bool:
        return self.store is None

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Bring the store schema up to date, then start all services."""
        if self.store is not None:
            if self.config.auto_migrate:
                await self.store.migrate()
            else:
                await self.store.load_schema()
            logger.info("store_ready", tables=sorted(self.store.schema))
        else:
            logger.info("demo_mode_enabled", reason="no database configured")
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close the store on shutdown."""
        await self.services.stop_all()
        if self.store is not None:
            await self.store.close()
