"""Competitor image library uploads from the browser extension.

Stores the image in the public reference bucket, then records it in the
competitor library table under the uploading user. The file upload is the
part that matters: when only the table insert fails the upload is still
reported as a success, without a record id.
"""

from __future__ import annotations

import json
import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Callable

from fastapi.concurrency import run_in_threadpool

from app.adapters.backend.base import AbstractBackend, AuthenticatedUser
from app.core.config import SupabaseSettings
from app.core.errors import UpstreamAppError, ValidationAppError
from app.schemas.uploads import CompetitorImageData, CompetitorImageUploadResponse
from app.utils.file_validators import detect_image_type, file_extension, mime_for_image_type

logger = logging.getLogger(__name__)

COMPETITOR_PREFIX = "competitor"
COMPETITOR_TAGS = ["竞品", "浏览器上传"]
UPLOADED_VIA = "browser-extension"
_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


def parse_metadata(raw: str | None) -> dict[str, Any]:
    """Decode the client metadata field; bad JSON degrades to ``{}``."""
    if not raw:
        return {}
    try:
        metadata = json.loads(raw)
    except ValueError as exc:
        logger.warning("competitor_upload.metadata_invalid", extra={"error": str(exc)})
        return {}
    if not isinstance(metadata, dict):
        logger.warning("competitor_upload.metadata_invalid", extra={"error": "not an object"})
        return {}
    return metadata


def build_storage_path(
    filename: str | None,
    *,
    clock: Callable[[], float] = time.time,
    token: Callable[[], str] | None = None,
) -> str:
    """``competitor/<epoch_ms>_<13 random chars>.<ext>``."""
    random_part = token() if token else "".join(
        secrets.choice(_RANDOM_ALPHABET) for _ in range(13)
    )
    timestamp_ms = int(clock() * 1000)
    return f"{COMPETITOR_PREFIX}/{timestamp_ms}_{random_part}.{file_extension(filename)}"


class CompetitorUploadService:
    """Validate, store and catalogue one competitor image."""

    def __init__(self, backend: AbstractBackend, supabase_settings: SupabaseSettings) -> None:
        self.backend = backend
        self.settings = supabase_settings

    def _build_record(
        self,
        *,
        user: AuthenticatedUser,
        filename: str,
        public_url: str,
        category: str,
        metadata: dict[str, Any],
        size: int,
        content_type: str,
        uploaded_at: str | None,
    ) -> dict[str, Any]:
        return {
            "user_id": user.id,
            "name": filename,
            "file_name": filename,
            "image_url": public_url,
            "thumbnail_url": public_url,
            "category": category,
            "tags": list(COMPETITOR_TAGS),
            "metadata": {
                **metadata,
                "originalFileName": filename,
                "fileSize": size,
                "mimeType": content_type,
                "uploadedVia": UPLOADED_VIA,
                "uploadedAt": uploaded_at or datetime.now(timezone.utc).isoformat(),
            },
            "is_active": True,
        }

    async def upload(
        self,
        *,
        user: AuthenticatedUser,
        data: bytes,
        filename: str | None,
        content_type: str | None,
        metadata_raw: str | None = None,
        category: str | None = None,
        uploaded_at: str | None = None,
    ) -> CompetitorImageUploadResponse:
        """Store the image and add it to the user's competitor library.

        Raises:
            ValidationAppError: If the file is empty or not an image.
            UpstreamAppError: If the storage upload fails.
        """
        if not data:
            raise ValidationAppError(code="empty_file", message="未提供文件")

        image_type = detect_image_type(data)
        if image_type is None:
            raise ValidationAppError(
                code="unsupported_file_type",
                message="Only JPEG, PNG, GIF, WEBP, BMP and AVIF images are accepted",
            )

        original_name = filename or f"image.{image_type}"
        mime_type = content_type or mime_for_image_type(image_type)
        path = build_storage_path(original_name)

        public_url = await run_in_threadpool(
            self.backend.upload_file,
            self.settings.reference_bucket,
            path,
            data,
            mime_type,
        )

        record = self._build_record(
            user=user,
            filename=original_name,
            public_url=public_url,
            category=category or "competitor",
            metadata=parse_metadata(metadata_raw),
            size=len(data),
            content_type=mime_type,
            uploaded_at=uploaded_at,
        )

        stored: dict[str, Any] | None = None
        try:
            stored = await run_in_threadpool(
                self.backend.insert_record, self.settings.competitor_table, record
            )
        except UpstreamAppError as exc:
            logger.error(
                "competitor_upload.record_failed",
                extra={"user_id": user.id, "storage_path": path, "error_message": exc.message},
            )

        logger.info(
            "competitor_upload.stored",
            extra={
                "user_id": user.id,
                "storage_path": path,
                "bytes": len(data),
                "image_type": image_type,
                "recorded": stored is not None,
            },
        )

        return CompetitorImageUploadResponse(
            data=CompetitorImageData(
                id=stored.get("id") if stored else None,
                url=public_url,
                file_name=path,
                original_name=original_name,
                size=len(data),
                type=mime_type,
            )
        )
