from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response, StreamingResponse

from app.api.dependencies import get_http_transport
from app.core.auth import verify_api_key
from app.core.config import settings
from app.core.rate_limit import enforce_rate_limit
from app.schemas.images import ImageGenerationRequest
from app.services.image_generation_service import ImageGenerationService
from app.services.image_proxy_service import ImageProxyService

router = APIRouter(prefix="/images", tags=["Images"])


def get_image_proxy_service(
    transport: httpx.AsyncBaseTransport | None = Depends(get_http_transport),
) -> ImageProxyService:
    return ImageProxyService(
        timeout_seconds=settings.app.image_proxy_timeout_seconds,
        transport=transport,
    )


def get_image_generation_service(
    transport: httpx.AsyncBaseTransport | None = Depends(get_http_transport),
) -> ImageGenerationService:
    return ImageGenerationService(settings.image, transport=transport)


@router.get("/proxy", dependencies=[Depends(enforce_rate_limit)])
async def proxy_image(
    url: str | None = Query(default=None, description="Absolute http(s) URL of the image."),
    service: ImageProxyService = Depends(get_image_proxy_service),
) -> Response:
    """Fetch a remote image and relay it with CORS and long-lived caching.

    Used directly as an ``<img src>`` so it does not require a client key.
    """
    image = await service.fetch(url)
    return Response(
        content=image.content,
        media_type=image.content_type,
        headers={"Cache-Control": settings.app.image_proxy_cache_control},
    )


@router.post(
    "/generations",
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
async def generate_images(
    body: ImageGenerationRequest,
    service: ImageGenerationService = Depends(get_image_generation_service),
) -> StreamingResponse:
    """Start a Seedream generation and stream its ``data:`` events back."""
    events = await service.start_stream(body)
    return StreamingResponse(
        events,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
