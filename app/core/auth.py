"""Authentication dependencies.

Two kinds of callers reach this service:
- Anonymous browser clients, identified by a shared client key sent as the
  ``apikey`` (or ``X-API-Key``) header. These call the AI proxy routes.
- Signed-in users, identified by a backend access token sent as
  ``Authorization: Bearer <jwt>``. These upload images, check rate limits
  and (for admins) manage other users.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Header
from fastapi.concurrency import run_in_threadpool

from app.adapters.backend.base import AbstractBackend, AuthenticatedUser
from app.api.dependencies import get_backend
from app.core.config import settings
from app.core.errors import (
    AuthenticationAppError,
    ConfigurationAppError,
    PermissionAppError,
)
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("key1, key2 , key3 ")
        {'key1', 'key2', 'key3'}
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()

    return {key.strip() for key in keys_string.split(",") if key.strip()}


def validate_api_key(provided_key: str | None) -> None:
    """Validate a client key against the configured keys.

    Raises:
        ConfigurationAppError: If keys are required but none are configured.
        AuthenticationAppError: If the key is missing or unknown.
    """
    if not settings.app.api_key_required:
        return

    valid_keys = parse_api_keys(settings.app.api_keys)

    if not valid_keys:
        logger.error(
            "api_key_validation_failed",
            extra={"reason": "api_keys_not_configured"},
        )
        raise ConfigurationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if not provided_key:
        logger.warning("auth.missing_key", extra={"auth_required": True})
        raise AuthenticationAppError(
            code="missing_api_key",
            message="Missing API key. Provide the apikey header.",
        )

    if provided_key not in valid_keys:
        logger.warning(
            "api_key_validation_failed",
            extra={
                "reason": "invalid_api_key",
                "api_key_hash": hash_identifier(provided_key),
            },
        )
        raise AuthenticationAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )


def client_key_from_headers(apikey: str | None, x_api_key: str | None) -> str | None:
    return apikey or x_api_key or None


async def verify_api_key(
    apikey: Annotated[str | None, Header()] = None,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency guarding the proxy routes with the client key.

    Usage:
        @router.post("/proxy", dependencies=[Depends(verify_api_key)])
    """
    validate_api_key(client_key_from_headers(apikey, x_api_key))


def _extract_bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthenticationAppError(
            code="missing_authorization",
            message="Missing authorization header",
        )
    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        raise AuthenticationAppError(
            code="missing_authorization",
            message="Missing authorization header",
        )
    return token


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    backend: AbstractBackend = Depends(get_backend),
) -> AuthenticatedUser:
    """Resolve the signed-in user from the bearer token.

    Raises:
        AuthenticationAppError: If the header is missing or the token is rejected.
    """
    token = _extract_bearer_token(authorization)
    user = await run_in_threadpool(backend.get_user, token)
    if user is None:
        logger.warning("auth.invalid_token", extra={"token_hash": hash_identifier(token)})
        raise AuthenticationAppError(code="invalid_token", message="Invalid token")

    logger.debug("auth.user_resolved", extra={"user_id": user.id})
    return user


async def require_admin(
    user: AuthenticatedUser = Depends(get_current_user),
    backend: AbstractBackend = Depends(get_backend),
) -> AuthenticatedUser:
    """Allow only users whose profile carries ``is_admin``."""
    if not await run_in_threadpool(backend.is_admin, user.id):
        logger.warning("auth.admin_required", extra={"user_id": user.id})
        raise PermissionAppError(
            code="admin_required",
            message="Forbidden: Admin access required",
        )
    return user
