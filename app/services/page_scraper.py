"""Product context around a competitor image, scraped from an HTML snapshot.

The browser extension captures the page when the user right-clicks an image.
Given that snapshot this module locates the ``<img>`` and guesses the product
name, price and description from nearby elements by class-name substrings.
A few marketplaces get dedicated selectors.
"""

from __future__ import annotations

import logging
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from app.core.errors import ValidationAppError
from app.schemas.scraping import ImageInfo

logger = logging.getLogger(__name__)

MAX_ANCESTOR_DEPTH = 5
MIN_DESCRIPTION_CHARS = 10
MAX_DESCRIPTION_CHARS = 200

NAME_SELECTOR = '[class*="title"], [class*="name"], [class*="product"], h1, h2, h3'
PRICE_SELECTOR = '[class*="price"], [class*="cost"], [class*="amount"]'
DESCRIPTION_SELECTOR = '[class*="desc"], [class*="detail"], p'

# (hostname fragments, card selector, name selector, price selector)
SITE_RULES: tuple[tuple[tuple[str, ...], str, str, str], ...] = (
    (
        ("shein.com",),
        '[class*="product"], [class*="goods-item"]',
        '[class*="goods-title"], [class*="product-title"]',
        '[class*="price"]',
    ),
    (
        ("taobao.com", "tmall.com"),
        ".item, .product",
        ".title, .name",
        ".price",
    ),
    (
        ("amazon.com",),
        "[data-asin], .s-result-item",
        "h2, .a-text-normal",
        ".a-price .a-offscreen",
    ),
)


def _text(element: Tag) -> str:
    return element.get_text().strip()


def _int_attr(element: Tag, name: str) -> int:
    value = element.get(name)
    if not value:
        return 0
    try:
        return int(str(value).strip().removesuffix("px"))
    except ValueError:
        return 0


def _srcset_urls(srcset: str) -> list[str]:
    return [candidate.strip().split(" ")[0] for candidate in srcset.split(",") if candidate.strip()]


def _candidate_urls(img: Tag, page_url: str | None) -> set[str]:
    raw: list[str] = []
    for attr in ("src", "data-src"):
        value = img.get(attr)
        if value:
            raw.append(str(value))
    srcset = img.get("srcset")
    if srcset:
        raw.extend(_srcset_urls(str(srcset)))

    urls = set(raw)
    if page_url:
        for value in raw:
            try:
                urls.add(urljoin(page_url, value))
            except ValueError:
                continue
    return urls


def _page_hostname(page_url: str | None) -> str:
    if not page_url:
        return ""
    try:
        return urlparse(page_url).hostname or ""
    except ValueError as exc:
        raise ValidationAppError(
            code="invalid_url",
            message="Invalid page URL",
            details={"field": "page_url"},
        ) from exc


def find_image(soup: BeautifulSoup, image_url: str, page_url: str | None = None) -> Tag | None:
    """First ``<img>`` whose src (raw or resolved) or srcset matches ``image_url``."""
    for img in soup.find_all("img"):
        if image_url in _candidate_urls(img, page_url):
            return img
    return None


def _fill_from_ancestors(image: Tag, info: ImageInfo) -> None:
    parent = image.parent
    depth = 0

    while parent is not None and parent.name != "[document]" and depth < MAX_ANCESTOR_DEPTH:
        if not info.product_name:
            element = parent.select_one(NAME_SELECTOR)
            if element is not None:
                info.product_name = _text(element)

        if not info.price:
            element = parent.select_one(PRICE_SELECTOR)
            if element is not None:
                info.price = _text(element)

        if not info.description:
            element = parent.select_one(DESCRIPTION_SELECTOR)
            if element is not None:
                text = _text(element)
                if MIN_DESCRIPTION_CHARS < len(text) < MAX_DESCRIPTION_CHARS:
                    info.description = text

        parent = parent.parent
        depth += 1


def _apply_site_rules(image: Tag, hostname: str, info: ImageInfo) -> None:
    for fragments, card_selector, name_selector, price_selector in SITE_RULES:
        if not any(fragment in hostname for fragment in fragments):
            continue

        card = image.css.closest(card_selector)
        if card is None:
            continue

        name = card.select_one(name_selector)
        price = card.select_one(price_selector)
        if name is not None:
            info.product_name = _text(name)
        if price is not None:
            info.price = _text(price)


def extract_image_info(html: str, image_url: str, page_url: str | None = None) -> ImageInfo | None:
    """Describe the image element and the product it most likely belongs to.

    Args:
        html: Page snapshot.
        image_url: Absolute URL of the right-clicked image.
        page_url: URL of the page, for relative src resolution and site rules.

    Returns:
        ImageInfo, or None when no matching ``<img>`` exists in the snapshot.

    Raises:
        ValidationAppError: If ``page_url`` cannot be parsed.
    """
    hostname = _page_hostname(page_url)
    soup = BeautifulSoup(html, "html.parser")
    image = find_image(soup, image_url, page_url)
    if image is None:
        logger.info("page_scraper.image_not_found", extra={"img_count": len(soup.find_all("img"))})
        return None

    classes = image.get("class") or []
    info = ImageInfo(
        alt=str(image.get("alt") or ""),
        title=str(image.get("title") or ""),
        width=_int_attr(image, "width"),
        height=_int_attr(image, "height"),
        class_name=" ".join(classes) if isinstance(classes, list) else str(classes),
        id=str(image.get("id") or ""),
    )

    _fill_from_ancestors(image, info)

    if hostname:
        _apply_site_rules(image, hostname, info)

    logger.debug(
        "page_scraper.extracted",
        extra={
            "hostname": hostname,
            "has_name": bool(info.product_name),
            "has_price": bool(info.price),
            "has_description": bool(info.description),
        },
    )
    return info
