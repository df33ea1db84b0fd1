from dashnotes.web.routers.auth import router as auth_router
from dashnotes.web.routers.notes import router as notes_router
from dashnotes.web.routers.notifications import router as notifications_router
from dashnotes.web.routers.shares import router as shares_router

__all__ = [
    "auth_router",
    "notes_router",
    "notifications_router",
    "shares_router",
]
