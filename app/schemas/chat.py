"""Pydantic schemas for the chat proxy and the customer-service assistant."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatCompletionProxyRequest(BaseModel):
    """Body accepted by the chat-completions proxy.

    ``messages`` are relayed untouched, so any OpenAI content shape (text
    parts, image_url parts) is accepted.
    """

    model_config = ConfigDict(extra="ignore")

    model: str | None = Field(default=None, description="Provider model name.")
    messages: list[dict[str, Any]] | None = Field(
        default=None,
        description="OpenAI-format chat messages.",
    )
    extra_body: dict[str, Any] | None = Field(
        default=None,
        description="Provider-specific fields, relayed upstream under the extra_body key.",
    )


class AssistantTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class AssistantMessageRequest(BaseModel):
    """A customer-service question plus the conversation so far."""

    message: str = Field(..., description="The user's new message.")
    history: list[AssistantTurn] = Field(
        default_factory=list,
        description="Earlier turns, oldest first.",
    )


class AssistantMessageResponse(BaseModel):
    reply: str
    model: str
