"""Chat-completions adapter layer over OpenAI-compatible providers."""

from app.adapters.llm.base import AbstractChatClient
from app.adapters.llm.factory import create_chat_client
from app.adapters.llm.openai_client import OpenAIChatClient

__all__ = [
    "AbstractChatClient",
    "OpenAIChatClient",
    "create_chat_client",
]
