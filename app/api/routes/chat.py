from typing import Any

from fastapi import APIRouter, Depends

from app.adapters.llm.base import AbstractChatClient
from app.api.dependencies import get_chat_client
from app.core.auth import verify_api_key
from app.core.config import settings
from app.core.rate_limit import enforce_rate_limit
from app.schemas.chat import (
    AssistantMessageRequest,
    AssistantMessageResponse,
    ChatCompletionProxyRequest,
)
from app.services.assistant_service import AssistantService
from app.services.chat_proxy_service import ChatProxyService

router = APIRouter(tags=["Chat"])


def get_chat_proxy_service(
    client: AbstractChatClient = Depends(get_chat_client),
) -> ChatProxyService:
    return ChatProxyService(client)


def get_assistant_service(
    client: AbstractChatClient = Depends(get_chat_client),
) -> AssistantService:
    return AssistantService(client, settings.llm)


@router.post(
    "/chat/completions",
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
async def chat_completions(
    body: ChatCompletionProxyRequest,
    service: ChatProxyService = Depends(get_chat_proxy_service),
) -> dict[str, Any]:
    """Proxy an OpenAI-style chat completion to the configured provider.

    The provider's completion object is returned unchanged.
    """
    return await service.forward(body)


@router.post(
    "/assistant/messages",
    response_model=AssistantMessageResponse,
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
async def assistant_message(
    body: AssistantMessageRequest,
    service: AssistantService = Depends(get_assistant_service),
) -> AssistantMessageResponse:
    """Answer a customer-service question, remembering earlier turns."""
    return await service.reply(body)
