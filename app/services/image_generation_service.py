"""Seedream image generation relay.

The provider streams server-sent events while images render. The relay keeps
only ``data:`` lines so the browser sees a clean event stream, and it checks
the upstream status before the response starts so errors still come back as
JSON.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator

import httpx

from app.core.config import ImageGenerationSettings
from app.core.errors import ConfigurationAppError, UpstreamAppError, ValidationAppError
from app.schemas.images import ImageGenerationRequest

logger = logging.getLogger(__name__)

ERROR_BODY_PREVIEW_CHARS = 200


def build_generation_payload(
    request: ImageGenerationRequest,
    image_settings: ImageGenerationSettings,
) -> dict[str, Any]:
    """Translate the studio request into the provider payload."""
    payload: dict[str, Any] = {
        "model": image_settings.model,
        "prompt": request.prompt,
        "response_format": "url",
        "size": request.size or image_settings.default_size,
        "stream": True,
        "watermark": image_settings.watermark,
    }

    if request.image:
        payload["image"] = request.image

    if request.sequential_image_generation:
        payload["sequential_image_generation"] = request.sequential_image_generation
        options = request.sequential_image_generation_options
        payload["sequential_image_generation_options"] = (
            options.model_dump()
            if options
            else {"max_images": image_settings.default_max_images}
        )

    return payload


def upstream_error_from_text(status_code: int, text: str) -> UpstreamAppError:
    """Normalize a failed provider response body into a domain error."""
    message = f"API error: {status_code}"
    try:
        data = json.loads(text)
    except ValueError:
        message = f"{message} - {text[:ERROR_BODY_PREVIEW_CHARS]}"
    else:
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                message = str(error["message"])
            elif data.get("message"):
                message = str(data["message"])

    return UpstreamAppError(
        code="upstream_error",
        message=message,
        details={"http_status": status_code, "upstream": "seedream"},
    )


class ImageGenerationService:
    """Start a streaming generation and relay its events."""

    def __init__(
        self,
        image_settings: ImageGenerationSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = image_settings
        self.transport = transport

    def _validate(self, request: ImageGenerationRequest) -> str:
        if not request.prompt:
            raise ValidationAppError(
                code="missing_prompt",
                message="Missing required field: prompt",
            )
        if not self.settings.api_key:
            logger.error("image_generation.missing_api_key")
            raise ConfigurationAppError(
                code="image_api_missing_key",
                message="SEEDREAM_API_KEY environment variable is not set",
            )
        return self.settings.api_key

    async def start_stream(self, request: ImageGenerationRequest) -> AsyncIterator[str]:
        """Open the upstream stream and return an iterator over relayed lines.

        Raises:
            ValidationAppError: If the prompt is missing.
            ConfigurationAppError: If the provider key is not configured.
            UpstreamAppError: If the provider rejects the request.
        """
        api_key = self._validate(request)
        payload = build_generation_payload(request, self.settings)

        logger.info(
            "image_generation.requested",
            extra={
                "prompt_length": len(request.prompt or ""),
                "reference_images": len(request.image or []),
                "size": payload["size"],
                "sequential": bool(request.sequential_image_generation),
            },
        )

        client = httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self.settings.timeout_seconds,
            transport=self.transport,
        )
        try:
            upstream_request = client.build_request(
                "POST",
                "/images/generations",
                json=payload,
                headers={"Authorization": f"Bearer {api_key}"},
            )
            response = await client.send(upstream_request, stream=True)
        except httpx.HTTPError as exc:
            await client.aclose()
            raise UpstreamAppError(
                code="upstream_unreachable",
                message="Could not reach image generation API",
                details={"http_status": 502, "upstream": "seedream"},
            ) from exc

        if response.is_error:
            body = (await response.aread()).decode("utf-8", errors="replace")
            await response.aclose()
            await client.aclose()
            logger.error(
                "image_generation.upstream_error",
                extra={"status": response.status_code, "body_preview": body[:500]},
            )
            raise upstream_error_from_text(response.status_code, body)

        return self._relay(client, response)

    async def _relay(self, client: httpx.AsyncClient, response: httpx.Response) -> AsyncIterator[str]:
        relayed = 0
        try:
            async for line in response.aiter_lines():
                if line.strip() and line.startswith("data:"):
                    relayed += 1
                    yield line + "\n"
        finally:
            await response.aclose()
            await client.aclose()
            logger.info("image_generation.stream_finished", extra={"events": relayed})
