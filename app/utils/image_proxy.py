"""Rewrite external image URLs so browsers load them through the proxy route."""

from __future__ import annotations

from urllib.parse import quote

IMAGE_PROXY_PATH = "/v1/images/proxy"


def proxy_image_url(url: str, base_url: str | None) -> str:
    """Return the proxied form of ``url``.

    ``blob:`` and ``data:`` URLs are local to the browser and pass through, as
    does everything when no public base URL is configured.
    """
    if not url:
        return url

    if url.startswith(("blob:", "data:")):
        return url

    if url.startswith(("http://", "https://")) and base_url:
        return f"{base_url.rstrip('/')}{IMAGE_PROXY_PATH}?url={quote(url, safe='')}"

    return url


def proxy_image_urls(urls: list[str], base_url: str | None) -> list[str]:
    return [proxy_image_url(url, base_url) for url in urls]
