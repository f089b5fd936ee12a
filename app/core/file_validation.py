"""Upload size enforcement."""
from __future__ import annotations

import logging

from fastapi import UploadFile

from app.core.config import settings
from app.core.errors import PayloadTooLargeAppError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


async def read_upload_file_limited(file: UploadFile, max_size_mb: int | None = None) -> bytes:
    """Read an uploaded file in chunks enforcing the max size limit.

    Uses ``file.size`` when the multipart headers carry it, then enforces the
    limit again while reading so an unknown size cannot exhaust memory.

    Args:
        file: FastAPI upload file instance.
        max_size_mb: Override for ``APP_MAX_UPLOAD_SIZE_MB``.

    Returns:
        File content as bytes if within the allowed size limit.

    Raises:
        PayloadTooLargeAppError: If the file exceeds the configured size limit.
    """
    limit_mb = max_size_mb or settings.app.max_upload_size_mb
    max_bytes = limit_mb * 1024 * 1024

    file_size = getattr(file, "size", None)
    if file_size is not None and file_size > max_bytes:
        logger.warning(
            "file_validation.rejected_by_header",
            extra={"file_size": file_size, "max_bytes": max_bytes},
        )
        raise PayloadTooLargeAppError(
            code="file_too_large",
            message=f"File too large. Maximum size: {limit_mb}MB",
            details={"max_bytes": max_bytes},
        )

    size = 0
    chunks: list[bytes] = []

    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break

        size += len(chunk)
        if size > max_bytes:
            logger.warning(
                "file_validation.rejected_by_chunked_read",
                extra={"size": size, "max_bytes": max_bytes},
            )
            raise PayloadTooLargeAppError(
                code="file_too_large",
                message=f"File too large. Maximum size: {limit_mb}MB",
                details={"max_bytes": max_bytes},
            )
        chunks.append(chunk)

    return b"".join(chunks)
