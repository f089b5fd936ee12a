from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.adapters.backend.base import AbstractBackend, AuthenticatedUser
from app.api.dependencies import get_backend
from app.core.auth import get_current_user
from app.core.config import settings
from app.core.errors import ValidationAppError
from app.core.file_validation import read_upload_file_limited
from app.schemas.uploads import CompetitorImageUploadResponse
from app.services.competitor_upload_service import CompetitorUploadService

router = APIRouter(tags=["Uploads"])


def get_competitor_upload_service(
    backend: AbstractBackend = Depends(get_backend),
) -> CompetitorUploadService:
    return CompetitorUploadService(backend, settings.supabase)


@router.post("/competitor-images", response_model=CompetitorImageUploadResponse)
async def upload_competitor_image(
    user: AuthenticatedUser = Depends(get_current_user),
    file: UploadFile | None = File(default=None, description="Image file to add to the library."),
    metadata: str | None = Form(default=None, description="JSON object with page context."),
    category: str | None = Form(default=None),
    uploaded_at: str | None = Form(default=None, alias="uploadedAt"),
    service: CompetitorUploadService = Depends(get_competitor_upload_service),
) -> CompetitorImageUploadResponse:
    """Add a right-clicked competitor image to the user's reference library."""
    if file is None:
        raise ValidationAppError(code="missing_file", message="未提供文件")

    data = await read_upload_file_limited(file)
    return await service.upload(
        user=user,
        data=data,
        filename=file.filename,
        content_type=file.content_type,
        metadata_raw=metadata,
        category=category,
        uploaded_at=uploaded_at,
    )
