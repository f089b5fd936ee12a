"""Global exception handlers for consistent error responses.

Every error leaves the service as ``{"error": {code, message, request_id,
details?}}`` regardless of which handler produced it.

Design:
- AppError subclasses → status from STATUS_BY_ERROR (upstream errors mirror
  the third-party status when known)
- Request validation errors → 400 invalid_request with field locations
- Framework HTTP errors (404, 405, ...) → their own status, same envelope
- Unexpected Exception → generic 500 (safety net, no stack traces)
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import (
    AppError,
    AuthenticationAppError,
    ConfigurationAppError,
    PayloadTooLargeAppError,
    PermissionAppError,
    RateLimitAppError,
    UpstreamAppError,
    ValidationAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (PayloadTooLargeAppError, 413),
    (ValidationAppError, 400),
    (AuthenticationAppError, 401),
    (PermissionAppError, 403),
    (RateLimitAppError, 429),
    (UpstreamAppError, 502),
    (ConfigurationAppError, 500),
)


def _status_for(exc: AppError) -> int:
    """Resolve the HTTP status for a domain error."""
    if isinstance(exc, UpstreamAppError) and exc.details:
        upstream_status = exc.details.get("http_status")
        if isinstance(upstream_status, int) and 400 <= upstream_status <= 599:
            return upstream_status

    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _rate_limit_headers(exc: AppError) -> dict[str, str]:
    if not isinstance(exc, RateLimitAppError) or not exc.details:
        return {}

    headers: dict[str, str] = {}
    if "retry_after" in exc.details:
        headers["Retry-After"] = str(exc.details["retry_after"])
    if "limit" in exc.details:
        headers["X-RateLimit-Limit"] = str(exc.details["limit"])
    if "remaining" in exc.details:
        headers["X-RateLimit-Remaining"] = str(exc.details["remaining"])
    if "reset_at" in exc.details:
        headers["X-RateLimit-Reset"] = str(exc.details["reset_at"])
    return headers


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code and error envelope.
    """
    status_code = _status_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=_rate_limit_headers(exc) or None,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies and parameters as 400 invalid_request."""
    fields = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]

    logger.warning(
        "request_validation_failed",
        extra={"request_path": request.url.path, "error_count": len(fields)},
    )

    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": "invalid_request",
                "message": "Request body or parameters are invalid",
                "request_id": get_request_id(),
                "details": {"fields": fields},
            }
        },
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap framework HTTP errors (unknown route, wrong method) in the envelope."""
    code = {404: "not_found", 405: "method_not_allowed"}.get(exc.status_code, "http_error")
    message = exc.detail if isinstance(exc.detail, str) else "HTTP error"

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "request_id": get_request_id(),
            }
        },
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the failure for debugging while returning a generic message.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Specific handlers are registered before the general fallback.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
