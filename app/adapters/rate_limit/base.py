"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so the
counter store can be swapped per deployment.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from app.core.config import RateLimitPolicy


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for fixed-window rate limiters."""

    @abstractmethod
    def consume(
        self,
        subject: str,
        endpoint: str,
        policy: RateLimitPolicy,
        *,
        cost: int = 1,
    ) -> RateLimitResult:
        """Consume rate limit budget for ``subject`` on ``endpoint``.

        Args:
            subject: Who is being limited (user id, client key, IP).
            endpoint: Logical endpoint the budget applies to.
            policy: Window size and budget for the endpoint.
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError


def validate_consume_args(subject: str, endpoint: str, cost: int) -> None:
    if cost < 1:
        raise ValueError("cost must be >= 1")
    if not subject:
        raise ValueError("subject must be a non-empty string")
    if not endpoint:
        raise ValueError("endpoint must be a non-empty string")
