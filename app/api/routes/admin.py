from fastapi import APIRouter, Depends

from app.adapters.backend.base import AbstractBackend, AuthenticatedUser
from app.api.dependencies import get_backend
from app.core.auth import require_admin
from app.core.config import settings
from app.schemas.admin import PasswordResetRequest, PasswordResetResponse
from app.services.admin_service import AdminService

router = APIRouter(prefix="/admin", tags=["Admin"])


def get_admin_service(backend: AbstractBackend = Depends(get_backend)) -> AdminService:
    return AdminService(backend, min_password_length=settings.app.min_password_length)


@router.post("/users/password", response_model=PasswordResetResponse)
async def reset_user_password(
    body: PasswordResetRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
) -> PasswordResetResponse:
    """Set a new password for any user. Admins only."""
    return await service.reset_password(admin, body)
