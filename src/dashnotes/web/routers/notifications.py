from uuid import UUID

from fastapi import APIRouter

from dashnotes.web.deps import AppDep, AuthTokenDep
from dashnotes.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["notifications"])


@router.post(
    "/notifications/{notification_id}/read",
    summary="Mark notification read",
    operation_id="markNotificationRead",
    status_code=204,
    responses={
        204: {"description": "Notification marked read"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        503: {"model": ErrorResponse, "description": "Notifications are not available"},
    },
)
async def mark_notification_read(notification_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.mark_notification_as_read(auth_token, notification_id)


@router.post(
    "/notifications/read-all",
    summary="Mark all notifications read",
    operation_id="markAllNotificationsRead",
    status_code=204,
    responses={
        204: {"description": "All notifications marked read"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        503: {"model": ErrorResponse, "description": "Notifications are not available"},
    },
)
async def mark_all_notifications_read(app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.mark_all_notifications_as_read(auth_token)
