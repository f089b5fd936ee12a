"""Pydantic schemas for the rate-limit check endpoint."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RateLimitCheckRequest(BaseModel):
    endpoint: str | None = Field(
        default=None,
        description="Logical endpoint to count the request against (e.g. '/api/auth/login').",
    )


class RateLimitCheckResponse(BaseModel):
    allowed: bool
    remaining: int
