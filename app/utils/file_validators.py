"""File validation utilities for uploaded images.

Checks binary signatures (magic numbers) so a renamed non-image cannot be
stored in the public reference bucket under an image extension.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

logger = logging.getLogger(__name__)

ImageType = Literal["jpeg", "png", "gif", "webp", "bmp", "avif"]

MIME_BY_IMAGE_TYPE: dict[str, str] = {
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "avif": "image/avif",
}


def detect_image_type(data: bytes) -> Optional[ImageType]:
    """Identify the image format from its leading bytes.

    Args:
        data: File content as bytes.

    Returns:
        The detected image type, or None if the bytes are not a supported image.
    """
    if data.startswith(b"\xff\xd8\xff"):
        return "jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "gif"
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp"
    if data.startswith(b"BM"):
        return "bmp"
    # ISO-BMFF: size(4) + "ftyp" + brand
    if len(data) >= 12 and data[4:8] == b"ftyp" and data[8:12] in (b"avif", b"avis"):
        return "avif"

    logger.warning(
        "file_signature.invalid",
        extra={"actual_prefix": data[:12].hex() if data else "EMPTY"},
    )
    return None


def mime_for_image_type(image_type: ImageType) -> str:
    return MIME_BY_IMAGE_TYPE[image_type]


def file_extension(filename: str | None, default: str = "jpg") -> str:
    """Extension after the last dot of ``filename``, lowercased.

    Examples:
        >>> file_extension("bottle.PNG")
        'png'
        >>> file_extension("noext")
        'jpg'
    """
    if not filename or "." not in filename:
        return default
    extension = filename.rsplit(".", 1)[-1].strip().lower()
    return extension or default
