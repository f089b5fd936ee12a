"""Chat-completions proxy.

Keeps the provider key on the server: browsers send ``{model, messages,
extra_body}`` and get the provider's completion object back unchanged.
"""

from __future__ import annotations

import logging
from typing import Any

from app.adapters.llm.base import AbstractChatClient
from app.core.errors import ValidationAppError
from app.schemas.chat import ChatCompletionProxyRequest

logger = logging.getLogger(__name__)


class ChatProxyService:
    """Validate and forward chat completion requests."""

    def __init__(self, client: AbstractChatClient) -> None:
        self.client = client

    async def forward(self, request: ChatCompletionProxyRequest) -> dict[str, Any]:
        """Relay one completion request to the provider.

        Raises:
            ValidationAppError: If model or messages are missing.
            UpstreamAppError: If the provider call fails.
        """
        if not request.model or not request.messages:
            raise ValidationAppError(
                code="missing_fields",
                message="Missing required fields: model and messages",
            )

        logger.info(
            "chat_proxy.forwarding",
            extra={
                "model": request.model,
                "message_count": len(request.messages),
                "has_extra_body": bool(request.extra_body),
            },
        )

        completion = await self.client.create_completion(
            model=request.model,
            messages=request.messages,
            extra_body=request.extra_body,
        )

        logger.info(
            "chat_proxy.completed",
            extra={
                "model": request.model,
                "choices_count": len(completion.get("choices") or []),
            },
        )
        return completion
