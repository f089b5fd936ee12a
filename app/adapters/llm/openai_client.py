"""OpenAI-compatible chat client adapter (OpenAI, Poe)."""

import logging
from typing import Any

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from app.adapters.llm.base import AbstractChatClient
from app.core.errors import UpstreamAppError

logger = logging.getLogger(__name__)

# Sampling options callers may forward to the provider
ALLOWED_PARAMS = {
    "temperature",
    "max_tokens",
    "top_p",
    "frequency_penalty",
    "presence_penalty",
    "seed",
    "stop",
}


def upstream_error_message(body: Any, status_code: int) -> str:
    """Pick the most useful message out of a provider error body."""
    fallback = f"API error: {status_code}"
    if isinstance(body, dict):
        nested = body.get("error")
        if isinstance(nested, dict) and nested.get("message"):
            return str(nested["message"])
        if body.get("message"):
            return str(body["message"])
        return fallback
    if isinstance(body, str) and body.strip():
        return f"{fallback} - {body.strip()}"
    return fallback


class OpenAIChatClient(AbstractChatClient):
    """Relay chat completions through the official OpenAI SDK.

    Retries are disabled: the caller sees the first upstream failure.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
        provider: str = "openai",
    ) -> None:
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.provider = provider

    async def create_completion(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        extra_body: dict[str, Any] | None = None,
        **params: Any,
    ) -> dict[str, Any]:
        request_params: dict[str, Any] = {
            "model": model,
            "messages": messages,
        }
        for name in ALLOWED_PARAMS:
            if params.get(name) is not None:
                request_params[name] = params[name]
        if extra_body:
            # Relayed as its own body key, the way the studio client sends it
            request_params["extra_body"] = {"extra_body": extra_body}

        try:
            response = await self.client.chat.completions.create(**request_params)
        except APIStatusError as exc:
            message = upstream_error_message(exc.body, exc.status_code)
            logger.error(
                "chat_proxy.upstream_error",
                extra={
                    "provider": self.provider,
                    "status": exc.status_code,
                    "error_message": message,
                },
            )
            raise UpstreamAppError(
                code="upstream_error",
                message=message,
                details={"http_status": exc.status_code, "upstream": self.provider},
            ) from exc
        except APITimeoutError as exc:
            raise UpstreamAppError(
                code="upstream_timeout",
                message=f"{self.provider} did not respond in time",
                details={"http_status": 504, "upstream": self.provider},
            ) from exc
        except APIConnectionError as exc:
            raise UpstreamAppError(
                code="upstream_unreachable",
                message=f"Could not reach {self.provider}",
                details={"http_status": 502, "upstream": self.provider},
            ) from exc

        return response.model_dump(mode="json", exclude_unset=True)
