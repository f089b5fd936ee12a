"""Supabase implementation of the backend interface.

Uses the service-role key, so every call bypasses row level security; callers
are responsible for authorizing the acting user first.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx
from supabase import (
    AuthError,
    Client,
    ClientOptions,
    PostgrestAPIError,
    StorageException,
    create_client,
)

from app.adapters.backend.base import AbstractBackend, AuthenticatedUser
from app.core.errors import UpstreamAppError, ValidationAppError

logger = logging.getLogger(__name__)


class SupabaseBackend(AbstractBackend):
    """Backend calls through the synchronous ``supabase`` client."""

    def __init__(
        self,
        client: Client,
        *,
        profiles_table: str = "user_profiles",
        rate_limit_table: str = "rate_limits",
    ) -> None:
        self.client = client
        self.profiles_table = profiles_table
        self.rate_limit_table = rate_limit_table

    @classmethod
    def from_credentials(
        cls,
        *,
        url: str,
        service_role_key: str,
        profiles_table: str = "user_profiles",
        rate_limit_table: str = "rate_limits",
    ) -> "SupabaseBackend":
        client = create_client(
            url,
            service_role_key,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )
        return cls(
            client,
            profiles_table=profiles_table,
            rate_limit_table=rate_limit_table,
        )

    def get_user(self, token: str) -> AuthenticatedUser | None:
        try:
            response = self.client.auth.get_user(token)
        except AuthError as exc:
            logger.info("backend.token_rejected", extra={"reason": str(exc)})
            return None

        if response is None or response.user is None:
            return None
        return AuthenticatedUser(id=response.user.id, email=response.user.email)

    def is_admin(self, user_id: str) -> bool:
        response = (
            self.client.table(self.profiles_table)
            .select("is_admin")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return bool(rows and rows[0].get("is_admin"))

    def update_user_password(self, user_id: str, password: str) -> dict[str, Any]:
        try:
            response = self.client.auth.admin.update_user_by_id(user_id, {"password": password})
        except AuthError as exc:
            raise ValidationAppError(code="password_update_failed", message=str(exc)) from exc

        return response.user.model_dump(mode="json") if response.user else {}

    def upload_file(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        storage = self.client.storage.from_(bucket)
        try:
            storage.upload(
                path=path,
                file=data,
                file_options={
                    "content-type": content_type,
                    "cache-control": "3600",
                    "upsert": "false",
                },
            )
        except (StorageException, httpx.HTTPError) as exc:
            raise UpstreamAppError(
                code="upload_failed",
                message=f"上传失败: {exc}",
                details={"http_status": 500, "upstream": "storage"},
            ) from exc

        return storage.get_public_url(path)

    def insert_record(self, table: str, record: dict[str, Any]) -> dict[str, Any] | None:
        try:
            response = self.client.table(table).insert(record).execute()
        except PostgrestAPIError as exc:
            raise UpstreamAppError(
                code="insert_failed",
                message=exc.message or "Insert failed",
                details={"upstream": "database"},
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamAppError(
                code="insert_failed",
                message=f"Insert failed: {exc}",
                details={"upstream": "database"},
            ) from exc

        rows = response.data or []
        return rows[0] if rows else None

    def find_rate_limit_window(
        self, user_id: str, endpoint: str, since: datetime
    ) -> dict[str, Any] | None:
        response = (
            self.client.table(self.rate_limit_table)
            .select("*")
            .eq("user_id", user_id)
            .eq("endpoint", endpoint)
            .gte("window_start", since.isoformat())
            .order("window_start", desc=True)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return rows[0] if rows else None

    def create_rate_limit_window(self, user_id: str, endpoint: str, started_at: datetime) -> None:
        self.client.table(self.rate_limit_table).insert(
            {
                "user_id": user_id,
                "endpoint": endpoint,
                "request_count": 1,
                "window_start": started_at.isoformat(),
            }
        ).execute()

    def set_rate_limit_count(self, row_id: Any, count: int) -> None:
        self.client.table(self.rate_limit_table).update({"request_count": count}).eq(
            "id", row_id
        ).execute()
