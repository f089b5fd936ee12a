"""Customer-service assistant backed by the chat proxy client."""

from __future__ import annotations

import logging
from typing import Any

from app.adapters.llm.base import AbstractChatClient
from app.core.config import LLMSettings
from app.core.errors import UpstreamAppError, ValidationAppError
from app.schemas.chat import AssistantMessageRequest, AssistantMessageResponse

logger = logging.getLogger(__name__)


def build_messages(
    system_prompt: str,
    request: AssistantMessageRequest,
) -> list[dict[str, Any]]:
    """System prompt, then the earlier turns, then the new user message."""
    messages: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    messages.extend(turn.model_dump() for turn in request.history)
    messages.append({"role": "user", "content": request.message})
    return messages


def _first_message_content(completion: dict[str, Any]) -> str | None:
    choices = completion.get("choices") or []
    if not choices:
        return None
    message = choices[0].get("message") or {}
    return message.get("content")


class AssistantService:
    """Answer customer-service questions with conversation memory."""

    def __init__(self, client: AbstractChatClient, llm_settings: LLMSettings) -> None:
        self.client = client
        self.settings = llm_settings

    async def reply(self, request: AssistantMessageRequest) -> AssistantMessageResponse:
        if not request.message.strip():
            raise ValidationAppError(code="empty_message", message="Message must not be empty")

        completion = await self.client.create_completion(
            model=self.settings.model,
            messages=build_messages(self.settings.assistant_system_prompt, request),
            temperature=self.settings.assistant_temperature,
            max_tokens=self.settings.assistant_max_tokens,
        )

        content = _first_message_content(completion)
        if not content:
            logger.error("assistant.empty_completion", extra={"model": self.settings.model})
            raise UpstreamAppError(
                code="empty_completion",
                message="Invalid response from chat API",
                details={"http_status": 502, "model": self.settings.model},
            )

        logger.info(
            "assistant.replied",
            extra={"history_turns": len(request.history), "reply_chars": len(content)},
        )
        return AssistantMessageResponse(reply=content, model=self.settings.model)
