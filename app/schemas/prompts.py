"""Pydantic schemas for prompt extraction."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PromptExtractionRequest(BaseModel):
    content: str = Field(..., description="Assistant message text to scan for prompts.")


class PromptExtractionResponse(BaseModel):
    prompts: list[str]
    count: int
