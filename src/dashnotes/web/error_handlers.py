import structlog
from fastapi import Request
from fastapi.responses import JSONResponse, Response

from dashnotes.errors import (
    AccessDeniedError,
    FeatureUnavailableError,
    NotAuthenticatedError,
    NotFoundError,
    NotSupportedInDemoModeError,
    StoreError,
    UserError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

# Checked in order; the first matching class wins
USER_ERROR_STATUS: list[tuple[type[UserError], int, str]] = [
    (NotAuthenticatedError, 401, "authentication_error"),
    (AccessDeniedError, 403, "access_denied"),
    (NotFoundError, 404, "not_found"),
    (ValidationError, 400, "validation_error"),
    (FeatureUnavailableError, 503, "feature_unavailable"),
    (NotSupportedInDemoModeError, 409, "demo_mode"),
]


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    for error_class, status_code, error_type in USER_ERROR_STATUS:
        if isinstance(exc, error_class):
            return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)
    return create_json_error_response(status_code=400, message=str(exc), error_type="bad_request")


async def store_error_handler(_: Request, exc: Exception) -> Response:
    """Handle failures reported by the store (502)."""
    logger.warning("store_error", error=str(exc))
    return create_json_error_response(status_code=502, message=str(exc), error_type="store_error")


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("unexpected_error", error=str(exc))
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
