"""Application-level exception types.

Domain errors raised by services and adapters. The exception handlers map
each subclass to an HTTP status so routes never build error responses by hand.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    http_status: int
    retry_after: int
    limit: int
    remaining: int
    reset_at: int
    upstream: str
    model: str
    field: str
    min_length: int
    max_bytes: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation."""


class AuthenticationAppError(AppError):
    """Raised when credentials are missing or invalid."""


class PermissionAppError(AppError):
    """Raised when an authenticated caller lacks a required role."""


class RateLimitAppError(AppError):
    """Raised when the caller exhausted its window budget."""


class UpstreamAppError(AppError):
    """Raised when a third-party API (chat, image, storage) fails."""


class ConfigurationAppError(AppError):
    """Raised when a required secret or endpoint is not configured."""


class PayloadTooLargeAppError(ValidationAppError):
    """Raised when an upload exceeds the configured size."""
