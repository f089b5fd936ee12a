"""Admin user management."""

from __future__ import annotations

import logging

from fastapi.concurrency import run_in_threadpool

from app.adapters.backend.base import AbstractBackend, AuthenticatedUser
from app.core.errors import ValidationAppError
from app.schemas.admin import PasswordResetRequest, PasswordResetResponse

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, backend: AbstractBackend, *, min_password_length: int = 6) -> None:
        self.backend = backend
        self.min_password_length = min_password_length

    async def reset_password(
        self,
        admin: AuthenticatedUser,
        request: PasswordResetRequest,
    ) -> PasswordResetResponse:
        """Set a new password for another user.

        Raises:
            ValidationAppError: On missing fields, a short password, or a
                backend rejection.
        """
        if not request.user_id or not request.new_password:
            raise ValidationAppError(
                code="missing_fields",
                message="Missing user_id or new_password",
            )

        if len(request.new_password) < self.min_password_length:
            raise ValidationAppError(
                code="weak_password",
                message=f"Password must be at least {self.min_password_length} characters",
                details={"min_length": self.min_password_length},
            )

        data = await run_in_threadpool(
            self.backend.update_user_password, request.user_id, request.new_password
        )

        logger.info(
            "admin.password_reset",
            extra={"admin_id": admin.id, "target_user_id": request.user_id},
        )
        return PasswordResetResponse(data=data)
