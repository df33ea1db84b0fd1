from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer

from dashnotes.app import App
from dashnotes.core.modules.session.models import AuthToken
from dashnotes.errors import NotAuthenticatedError

AUTH_COOKIE = "auth_token"

bearer_scheme = HTTPBearer(auto_error=False)
cookie_scheme = APIKeyCookie(name=AUTH_COOKIE, auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_auth_token(
    app: Annotated[App, Depends(get_app)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
    token_cookie: Annotated[str | None, Depends(cookie_scheme)] = None,
) -> AuthToken:
    """Get and validate auth token from Authorization Bearer header or cookie."""
    candidates = []
    if credentials and credentials.scheme == "Bearer":
        candidates.append(credentials.credentials)
    if token_cookie:
        candidates.append(token_cookie)

    for candidate in candidates:
        auth_token = AuthToken(candidate)
        if await app.is_auth_token_valid(auth_token):
            return auth_token

    raise NotAuthenticatedError


AppDep = Annotated[App, Depends(get_app)]
AuthTokenDep = Annotated[AuthToken, Depends(get_auth_token)]
