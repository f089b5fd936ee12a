"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Windows are aligned to multiples of the window size since the epoch.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitResult,
    validate_consume_args,
)
from app.core.config import RateLimitPolicy


@dataclass
class _WindowState:
    window_start: int
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping one counter per (subject, endpoint) in memory."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            clock: Time source function returning UNIX time in seconds.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[tuple[str, str], _WindowState] = {}

    @staticmethod
    def _get_window_bounds(now: float, window_seconds: int) -> tuple[int, int]:
        """Return (window_start, reset_at) epoch seconds for ``now``."""
        window_start = int(now // window_seconds) * window_seconds
        return window_start, window_start + window_seconds

    def _get_or_reset_state(self, key: tuple[str, str], window_start: int) -> _WindowState:
        state = self._state_by_key.get(key)
        if state is None or state.window_start != window_start:
            state = _WindowState(window_start=window_start, count=0)
            self._state_by_key[key] = state
        return state

    def consume(
        self,
        subject: str,
        endpoint: str,
        policy: RateLimitPolicy,
        *,
        cost: int = 1,
    ) -> RateLimitResult:
        """Check the current window and count the request when allowed.

        Raises:
            ValueError: If subject/endpoint are empty or cost is invalid.
        """
        validate_consume_args(subject, endpoint, cost)

        now = self._clock()
        window_start, reset_at = self._get_window_bounds(now, policy.window_seconds)

        with self._lock:
            state = self._get_or_reset_state((subject, endpoint), window_start)

            if state.count + cost <= policy.max_requests:
                state.count += cost
                return RateLimitResult(
                    allowed=True,
                    limit=policy.max_requests,
                    remaining=max(0, policy.max_requests - state.count),
                    reset_at=reset_at,
                    retry_after_seconds=None,
                )

            return RateLimitResult(
                allowed=False,
                limit=policy.max_requests,
                remaining=max(0, policy.max_requests - state.count),
                reset_at=reset_at,
                retry_after_seconds=max(0, int(math.ceil(reset_at - now))),
            )

    def reset(self) -> None:
        """Forget every counter."""
        with self._lock:
            self._state_by_key.clear()
