from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dashnotes.app import App
from dashnotes.config import Config
from dashnotes.errors import StoreError, UserError
from dashnotes.web.error_handlers import general_exception_handler, store_error_handler, user_error_handler
from dashnotes.web.openapi import set_custom_openapi
from dashnotes.web.routers import auth_router, notes_router, notifications_router, shares_router


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="Dashboard Notes API",
        lifespan=lifespan,
        openapi_tags=[],
    )

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "mode": "demo" if app_instance.core.is_demo_only else "store"}

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(notes_router, prefix="/api/v1")
    app.include_router(shares_router, prefix="/api/v1")
    app.include_router(notifications_router, prefix="/api/v1")

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
