"""Image fetch-and-relay.

Competitor and generated images live on third-party hosts that block
cross-origin canvas reads and hotlinking. The proxy fetches them with
browser-like headers and relays the bytes with a long cache lifetime.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from app.core.errors import UpstreamAppError, ValidationAppError

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
IMAGE_ACCEPT = "image/webp,image/apng,image/*,*/*;q=0.8"
DEFAULT_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True)
class ProxiedImage:
    content: bytes
    content_type: str


def parse_target_url(raw_url: str | None) -> httpx.URL:
    """Validate the ``url`` query parameter.

    Raises:
        ValidationAppError: If it is missing, unparsable or not absolute http(s).
    """
    if not raw_url:
        raise ValidationAppError(code="missing_url", message="Missing 'url' parameter")

    try:
        url = httpx.URL(raw_url)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise ValidationAppError(code="invalid_url", message="Invalid URL format") from exc

    if url.scheme not in ("http", "https") or not url.host:
        raise ValidationAppError(code="invalid_url", message="Invalid URL format")
    return url


def _origin(url: httpx.URL) -> str:
    # netloc keeps IPv6 brackets and any non-default port
    return f"{url.scheme}://{url.netloc.decode('ascii')}"


class ImageProxyService:
    """Fetch a remote image on behalf of the browser."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def fetch(self, raw_url: str | None) -> ProxiedImage:
        """Download the image at ``raw_url``.

        Raises:
            ValidationAppError: For a bad ``url`` parameter.
            UpstreamAppError: If the remote host answers with an error or is unreachable.
        """
        url = parse_target_url(raw_url)
        headers = {
            "User-Agent": BROWSER_USER_AGENT,
            "Accept": IMAGE_ACCEPT,
            "Referer": _origin(url),
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.get(url, headers=headers)
        except httpx.TimeoutException as exc:
            raise UpstreamAppError(
                code="image_fetch_timeout",
                message="Timed out fetching image",
                details={"http_status": 504, "upstream": url.host},
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamAppError(
                code="image_fetch_failed",
                message=f"Failed to fetch image: {exc}",
                details={"upstream": url.host},
            ) from exc

        if response.is_error:
            logger.warning(
                "image_proxy.upstream_error",
                extra={"upstream_host": url.host, "status": response.status_code},
            )
            raise UpstreamAppError(
                code="image_fetch_failed",
                message=f"Failed to fetch image: {response.status_code}",
                details={"http_status": response.status_code, "upstream": url.host},
            )

        content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        logger.info(
            "image_proxy.relayed",
            extra={
                "upstream_host": url.host,
                "content_type": content_type,
                "bytes": len(response.content),
            },
        )
        return ProxiedImage(content=response.content, content_type=content_type)
