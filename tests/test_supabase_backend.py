"""Tests for the Supabase backend adapter.

The Supabase client is a MagicMock; the tests check which query builder calls
the adapter makes and how client errors become domain errors.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import pytest
from supabase import AuthError, PostgrestAPIError, StorageException

from app.adapters.backend.base import AuthenticatedUser
from app.adapters.backend.factory import create_backend
from app.adapters.backend.supabase_backend import SupabaseBackend
from app.core.config import SupabaseSettings
from app.core.errors import ConfigurationAppError, UpstreamAppError, ValidationAppError
from app.services.competitor_upload_service import CompetitorUploadService


@pytest.fixture
def supabase_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def backend(supabase_client: MagicMock) -> SupabaseBackend:
    return SupabaseBackend(supabase_client)


class TestAuth:
    def test_get_user(self, backend, supabase_client) -> None:
        supabase_client.auth.get_user.return_value = SimpleNamespace(
            user=SimpleNamespace(id="user-1", email="user@example.com")
        )

        user = backend.get_user("jwt")

        assert user.id == "user-1"
        supabase_client.auth.get_user.assert_called_once_with("jwt")

    def test_rejected_token_is_none(self, backend, supabase_client) -> None:
        supabase_client.auth.get_user.side_effect = AuthError("invalid JWT", None)

        assert backend.get_user("jwt") is None

    def test_is_admin(self, backend, supabase_client) -> None:
        query = supabase_client.table.return_value.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value = SimpleNamespace(data=[{"is_admin": True}])

        assert backend.is_admin("admin-1") is True
        supabase_client.table.assert_called_with("user_profiles")

    def test_is_admin_without_profile(self, backend, supabase_client) -> None:
        query = supabase_client.table.return_value.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value = SimpleNamespace(data=[])

        assert backend.is_admin("user-1") is False

    def test_password_update_error(self, backend, supabase_client) -> None:
        supabase_client.auth.admin.update_user_by_id.side_effect = AuthError("User not found", None)

        with pytest.raises(ValidationAppError) as exc_info:
            backend.update_user_password("ghost", "s3cret!")

        assert exc_info.value.message == "User not found"


class TestStorageAndTables:
    def test_upload_returns_public_url(self, backend, supabase_client) -> None:
        bucket = supabase_client.storage.from_.return_value
        bucket.get_public_url.return_value = "https://cdn/reference-images/competitor/a.png"

        url = backend.upload_file("reference-images", "competitor/a.png", b"data", "image/png")

        assert url == "https://cdn/reference-images/competitor/a.png"
        supabase_client.storage.from_.assert_called_once_with("reference-images")
        options = bucket.upload.call_args.kwargs["file_options"]
        assert options["content-type"] == "image/png"
        assert options["upsert"] == "false"

    def test_upload_failure(self, backend, supabase_client) -> None:
        bucket = supabase_client.storage.from_.return_value
        bucket.upload.side_effect = StorageException({"message": "Duplicate"})

        with pytest.raises(UpstreamAppError) as exc_info:
            backend.upload_file("reference-images", "competitor/a.png", b"data", "image/png")

        assert exc_info.value.code == "upload_failed"
        assert exc_info.value.details["http_status"] == 500

    def test_insert_failure(self, backend, supabase_client) -> None:
        supabase_client.table.return_value.insert.return_value.execute.side_effect = (
            PostgrestAPIError({"message": "relation does not exist", "code": "42P01"})
        )

        with pytest.raises(UpstreamAppError) as exc_info:
            backend.insert_record("public_reference_images", {"name": "a.png"})

        assert exc_info.value.message == "relation does not exist"

    def test_insert_network_failure_is_upstream_error(self, backend, supabase_client) -> None:
        supabase_client.table.return_value.insert.return_value.execute.side_effect = (
            httpx.ConnectError("connection refused")
        )

        with pytest.raises(UpstreamAppError) as exc_info:
            backend.insert_record("public_reference_images", {"name": "a.png"})

        assert exc_info.value.code == "insert_failed"

    def test_upload_network_failure_is_upload_failed(self, backend, supabase_client) -> None:
        bucket = supabase_client.storage.from_.return_value
        bucket.upload.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(UpstreamAppError) as exc_info:
            backend.upload_file("reference-images", "competitor/a.png", b"data", "image/png")

        assert exc_info.value.code == "upload_failed"

    @pytest.mark.asyncio
    async def test_upload_survives_unreachable_database(self, backend, supabase_client) -> None:
        bucket = supabase_client.storage.from_.return_value
        bucket.get_public_url.return_value = "https://cdn/reference-images/competitor/a.png"
        supabase_client.table.return_value.insert.return_value.execute.side_effect = (
            httpx.ConnectError("connection refused")
        )
        service = CompetitorUploadService(backend, SupabaseSettings())

        result = await service.upload(
            user=AuthenticatedUser(id="user-1", email="user@example.com"),
            data=b"\x89PNG\r\n\x1a\n" + b"\x00" * 16,
            filename="a.png",
            content_type="image/png",
        )

        assert result.data.id is None
        assert result.data.url == "https://cdn/reference-images/competitor/a.png"
        bucket.upload.assert_called_once()

    def test_find_rate_limit_window(self, backend, supabase_client) -> None:
        chain = (
            supabase_client.table.return_value.select.return_value.eq.return_value.eq.return_value
            .gte.return_value.order.return_value.limit.return_value
        )
        chain.execute.return_value = SimpleNamespace(
            data=[{"id": 3, "request_count": 2, "window_start": "2025-01-01T00:00:00Z"}]
        )
        since = datetime(2025, 1, 1, tzinfo=timezone.utc)

        row = backend.find_rate_limit_window("user-1", "/api/auth/login", since)

        assert row["id"] == 3
        supabase_client.table.assert_called_with("rate_limits")
        gte = supabase_client.table.return_value.select.return_value.eq.return_value.eq.return_value.gte
        gte.assert_called_once_with("window_start", since.isoformat())


class TestFactory:
    @patch("app.adapters.backend.factory.settings")
    def test_missing_credentials(self, mock_settings) -> None:
        mock_settings.supabase.url = None
        mock_settings.supabase.service_role_key = "key"

        with pytest.raises(ConfigurationAppError) as exc_info:
            create_backend()

        assert exc_info.value.code == "backend_not_configured"

    def test_route_reports_unconfigured_backend(self, client, user_headers) -> None:
        response = client.post("/v1/rate-limit/check", json={}, headers=user_headers)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "backend_not_configured"
