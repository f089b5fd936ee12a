"""Fixed-window rate limiter backed by the ``rate_limits`` table.

The window starts at the first request of a subject on an endpoint and lasts
``policy.window_seconds``. Each check is a plain read, then an update or
insert: two concurrent requests may both read the same count, so the budget
is approximate under contention.
"""

from __future__ import annotations

import logging
import math
import time
from datetime import datetime, timedelta, timezone
from typing import Callable

from app.adapters.backend.base import AbstractBackend
from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitResult,
    validate_consume_args,
)
from app.core.config import RateLimitPolicy

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        # Postgres may return "Z" or "+00:00" suffixes
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class TableFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping counters as rows in the hosted database."""

    def __init__(
        self,
        backend: AbstractBackend,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._backend = backend
        self._clock = clock

    def consume(
        self,
        subject: str,
        endpoint: str,
        policy: RateLimitPolicy,
        *,
        cost: int = 1,
    ) -> RateLimitResult:
        validate_consume_args(subject, endpoint, cost)

        now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        window = timedelta(seconds=policy.window_seconds)

        row = self._backend.find_rate_limit_window(subject, endpoint, now - window)

        if row is None:
            self._backend.create_rate_limit_window(subject, endpoint, now)
            return RateLimitResult(
                allowed=True,
                limit=policy.max_requests,
                remaining=policy.max_requests - cost,
                reset_at=int((now + window).timestamp()),
                retry_after_seconds=None,
            )

        count = int(row.get("request_count") or 0)
        reset_at = _parse_timestamp(row["window_start"]) + window

        if count >= policy.max_requests:
            retry_after = math.ceil((reset_at - now).total_seconds())
            return RateLimitResult(
                allowed=False,
                limit=policy.max_requests,
                remaining=0,
                reset_at=int(reset_at.timestamp()),
                retry_after_seconds=max(0, retry_after),
            )

        self._backend.set_rate_limit_count(row["id"], count + cost)
        logger.debug(
            "rate_limit.window_incremented",
            extra={"endpoint": endpoint, "request_count": count + cost},
        )
        return RateLimitResult(
            allowed=True,
            limit=policy.max_requests,
            remaining=policy.max_requests - count - cost,
            reset_at=int(reset_at.timestamp()),
            retry_after_seconds=None,
        )
