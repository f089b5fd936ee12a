"""Pydantic schemas for admin user management."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class PasswordResetRequest(BaseModel):
    user_id: str | None = Field(default=None, description="Id of the user to update.")
    new_password: str | None = Field(default=None, description="Replacement password.")


class PasswordResetResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]
