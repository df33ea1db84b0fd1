from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from dashnotes.core.modules.session.models import AuthToken
from dashnotes.core.modules.user.models import CurrentUser, Role
from dashnotes.web.deps import AUTH_COOKIE, AppDep, AuthTokenDep
from dashnotes.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    """Authentication request."""

    username: str = Field(..., description="Username for authentication")
    password: str = Field(..., description="Password for authentication")


class DemoLoginRequest(BaseModel):
    """Request to open a demo session for a dashboard."""

    role: Role = Field(..., description="Dashboard to open in demo mode")


class LoginResponse(BaseModel):
    """Authentication response."""

    token: str = Field(..., description="Authentication token for subsequent requests")


def _set_auth_cookie(response: Response, token: AuthToken) -> None:
    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=False,  # Set to True in production with HTTPS
        max_age=30 * 24 * 60 * 60,
    )


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with username and password to receive an authentication token.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(login_data: LoginRequest, app: AppDep, response: Response) -> LoginResponse:
    token = await app.login(login_data.username, login_data.password)
    _set_auth_cookie(response, token)
    return LoginResponse(token=token)


@router.post(
    "/auth/demo",
    summary="Start demo session",
    description="Open a dashboard without an account. Notes are kept locally and cannot be shared.",
    operation_id="startDemoSession",
    responses={200: {"description": "Demo session started"}},
)
async def start_demo_session(demo_data: DemoLoginRequest, app: AppDep, response: Response) -> LoginResponse:
    token = await app.start_demo_session(demo_data.role)
    _set_auth_cookie(response, token)
    return LoginResponse(token=token)


@router.get(
    "/auth/me",
    summary="Current identity",
    description="Return the identity and dashboard role behind the authentication token.",
    operation_id="getCurrentUser",
    responses={
        200: {"description": "Current user"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_current_user(app: AppDep, auth_token: AuthTokenDep) -> CurrentUser:
    return await app.get_current_user(auth_token)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Invalidate the current authentication session.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout(app: AppDep, auth_token: AuthTokenDep, response: Response) -> None:
    await app.logout(auth_token)
    response.delete_cookie(AUTH_COOKIE)
