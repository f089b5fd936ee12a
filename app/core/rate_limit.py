"""Rate limiting wiring for FastAPI routes.

Two uses share the adapters in ``app.adapters.rate_limit``:
- ``enforce_rate_limit`` throttles the AI proxy routes per client key (or
  client IP when no key is sent) with an in-memory fixed window.
- ``get_check_limiter`` backs the explicit rate-limit check endpoint, keyed
  by user id and logical endpoint, stored in memory or in the backend table
  depending on ``APP_RATE_LIMIT_BACKEND``.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Header, Request

from app.adapters.backend.base import AbstractBackend
from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.adapters.rate_limit.table import TableFixedWindowRateLimiter
from app.api.dependencies import get_backend
from app.core.auth import client_key_from_headers
from app.core.config import RateLimitPolicy, settings
from app.core.errors import ConfigurationAppError, RateLimitAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

DEFAULT_POLICY_KEY = "default"

_proxy_limiter: AbstractRateLimiter | None = None
_memory_check_limiter: InMemoryFixedWindowRateLimiter | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide limiter used for proxy routes."""

    global _proxy_limiter
    if _proxy_limiter is None:
        _proxy_limiter = InMemoryFixedWindowRateLimiter()
    return _proxy_limiter


def reset_rate_limiters() -> None:
    """Drop cached limiters so the next request starts from empty counters."""

    global _proxy_limiter, _memory_check_limiter
    _proxy_limiter = None
    _memory_check_limiter = None


def get_check_limiter(
    backend: Annotated[AbstractBackend, Depends(get_backend)],
) -> AbstractRateLimiter:
    """Limiter for the rate-limit check endpoint, per configured store."""

    global _memory_check_limiter
    store = settings.app.rate_limit_backend.lower()
    if store == "supabase":
        return TableFixedWindowRateLimiter(backend)
    if store == "memory":
        if _memory_check_limiter is None:
            _memory_check_limiter = InMemoryFixedWindowRateLimiter()
        return _memory_check_limiter

    raise ConfigurationAppError(
        code="rate_limit_backend_unknown",
        message=f"Unknown rate limit backend: '{store}'. Supported: memory, supabase",
    )


def resolve_policy(endpoint: str | None) -> RateLimitPolicy:
    """Return the policy configured for ``endpoint``, falling back to default."""

    policies = settings.app.rate_limit_policies
    if endpoint and endpoint in policies:
        return policies[endpoint]
    return policies.get(
        DEFAULT_POLICY_KEY,
        RateLimitPolicy(max_requests=100, window_seconds=60),
    )


def raise_rate_limited(result: RateLimitResult, *, include_headers: bool = True) -> None:
    """Raise the 429 domain error for a blocked result."""

    retry_after = result.retry_after_seconds or 0
    details: dict = {"retry_after": retry_after}
    if include_headers:
        details.update(
            limit=result.limit,
            remaining=result.remaining,
            reset_at=result.reset_at,
        )
    raise RateLimitAppError(
        code="rate_limited",
        message="Rate limit exceeded",
        details=details,
    )


def _build_subject(request: Request, client_key: str | None) -> tuple[str, str]:
    if client_key:
        return f"api_key:{hash_identifier(client_key)}", "api_key"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}", "ip"


async def enforce_rate_limit(
    request: Request,
    apikey: Annotated[str | None, Header()] = None,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency throttling a proxy route.

    Raises:
        RateLimitAppError: 429 when the caller's window budget is spent.
    """

    if not settings.app.rate_limit_enabled:
        return

    subject, key_type = _build_subject(request, client_key_from_headers(apikey, x_api_key))
    policy = RateLimitPolicy(
        max_requests=settings.app.rate_limit_requests,
        window_seconds=settings.app.rate_limit_window_seconds,
    )
    endpoint = request.url.path

    result = get_rate_limiter().consume(subject, endpoint, policy)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_type": key_type,
                "endpoint": endpoint,
                "remaining": result.remaining,
            },
        )
        return

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_type": key_type,
            "key_hash": hash_identifier(subject),
            "endpoint": endpoint,
            "limit": result.limit,
            "retry_after_s": result.retry_after_seconds,
        },
    )
    raise_rate_limited(result, include_headers=settings.app.rate_limit_include_headers)
