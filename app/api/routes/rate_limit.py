from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from app.adapters.backend.base import AuthenticatedUser
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.auth import get_current_user
from app.core.rate_limit import (
    DEFAULT_POLICY_KEY,
    get_check_limiter,
    raise_rate_limited,
    resolve_policy,
)
from app.schemas.rate_limit import RateLimitCheckRequest, RateLimitCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Rate limit"])


@router.post("/rate-limit/check", response_model=RateLimitCheckResponse)
async def check_rate_limit(
    body: RateLimitCheckRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    limiter: AbstractRateLimiter = Depends(get_check_limiter),
) -> RateLimitCheckResponse:
    """Count one request by the signed-in user against ``endpoint``.

    Returns the remaining budget, or 429 with ``Retry-After`` once the
    window's budget is spent.
    """
    endpoint = body.endpoint or DEFAULT_POLICY_KEY
    policy = resolve_policy(body.endpoint)

    result = await run_in_threadpool(limiter.consume, user.id, endpoint, policy)
    if not result.allowed:
        logger.warning(
            "rate_limit.check_exceeded",
            extra={
                "user_id": user.id,
                "endpoint": endpoint,
                "retry_after_s": result.retry_after_seconds,
            },
        )
        raise_rate_limited(result, include_headers=False)

    return RateLimitCheckResponse(allowed=True, remaining=result.remaining)
