"""Factory pattern for creating chat client instances."""

from app.adapters.llm.base import AbstractChatClient
from app.adapters.llm.openai_client import OpenAIChatClient
from app.core.config import settings
from app.core.errors import ConfigurationAppError

PROVIDER_BASE_URLS = {
    "poe": "https://api.poe.com/v1",
    "openai": None,
}


def create_chat_client() -> AbstractChatClient:
    """Instantiate the chat client for the configured provider.

    Raises:
        ConfigurationAppError: If the key is missing or the provider is unknown.
    """
    provider = settings.llm.provider.lower()

    if provider not in PROVIDER_BASE_URLS:
        supported = ", ".join(sorted(PROVIDER_BASE_URLS))
        raise ConfigurationAppError(
            code="llm_unknown_provider",
            message=f"Unknown LLM provider: '{provider}'. Supported providers: {supported}",
        )

    if not settings.llm.api_key:
        raise ConfigurationAppError(
            code="llm_missing_api_key",
            message="API key not configured. Please set LLM_API_KEY.",
            details={"hint": "Contact administrator to configure the API key"},
        )

    return OpenAIChatClient(
        api_key=settings.llm.api_key,
        base_url=settings.llm.base_url or PROVIDER_BASE_URLS[provider],
        timeout_seconds=settings.llm.timeout_seconds,
        provider=provider,
    )
