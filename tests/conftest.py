"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the environment before any app import so settings never read a
developer's .env file, and provides in-memory stand-ins for the hosted
backend and the chat provider.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

# Set default env vars that all tests might need
os.environ.setdefault("LLM_PROVIDER", "poe")
os.environ.setdefault("LLM_MODEL", "gpt-3.5-turbo")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
# Proxy throttling is switched on per test
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("APP_RATE_LIMIT_BACKEND", "memory")
# The hosted backend is always faked
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("SUPABASE_SERVICE_ROLE_KEY", None)

from datetime import datetime
from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.adapters.backend.base import AbstractBackend, AuthenticatedUser
from app.adapters.llm.base import AbstractChatClient
from app.api.dependencies import get_backend, get_chat_client
from app.core.errors import UpstreamAppError, ValidationAppError
from app.core.rate_limit import reset_rate_limiters
from app.main import app


class FakeBackend(AbstractBackend):
    """Backend double keeping users, files and rows in dictionaries."""

    def __init__(self) -> None:
        self.users_by_token: dict[str, AuthenticatedUser] = {
            "user-token": AuthenticatedUser(id="user-1", email="user@example.com"),
            "admin-token": AuthenticatedUser(id="admin-1", email="admin@example.com"),
        }
        self.admin_ids: set[str] = {"admin-1"}
        self.passwords: dict[str, str] = {}
        self.uploads: list[dict[str, Any]] = []
        self.records: list[tuple[str, dict[str, Any]]] = []
        self.rate_limit_rows: list[dict[str, Any]] = []
        self.fail_insert = False
        self.fail_password_update = False

    def get_user(self, token: str) -> AuthenticatedUser | None:
        return self.users_by_token.get(token)

    def is_admin(self, user_id: str) -> bool:
        return user_id in self.admin_ids

    def update_user_password(self, user_id: str, password: str) -> dict[str, Any]:
        if self.fail_password_update:
            raise ValidationAppError(code="password_update_failed", message="User not found")
        self.passwords[user_id] = password
        return {"user": {"id": user_id}}

    def upload_file(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        self.uploads.append(
            {"bucket": bucket, "path": path, "data": data, "content_type": content_type}
        )
        return f"https://storage.example.com/{bucket}/{path}"

    def insert_record(self, table: str, record: dict[str, Any]) -> dict[str, Any] | None:
        if self.fail_insert:
            raise UpstreamAppError(code="insert_failed", message="relation does not exist")
        self.records.append((table, record))
        return {"id": len(self.records), **record}

    def find_rate_limit_window(
        self, user_id: str, endpoint: str, since: datetime
    ) -> dict[str, Any] | None:
        matches = [
            row
            for row in self.rate_limit_rows
            if row["user_id"] == user_id
            and row["endpoint"] == endpoint
            and row["window_start"] >= since
        ]
        if not matches:
            return None
        return dict(max(matches, key=lambda row: row["window_start"]))

    def create_rate_limit_window(self, user_id: str, endpoint: str, started_at: datetime) -> None:
        self.rate_limit_rows.append(
            {
                "id": len(self.rate_limit_rows) + 1,
                "user_id": user_id,
                "endpoint": endpoint,
                "request_count": 1,
                "window_start": started_at,
            }
        )

    def set_rate_limit_count(self, row_id: Any, count: int) -> None:
        for row in self.rate_limit_rows:
            if row["id"] == row_id:
                row["request_count"] = count


class FakeChatClient(AbstractChatClient):
    """Chat client double returning a canned completion and recording calls."""

    def __init__(self, content: str | None = "你好，有什么可以帮您？") -> None:
        self.content = content
        self.calls: list[dict[str, Any]] = []
        self.error: Exception | None = None

    async def create_completion(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        extra_body: dict[str, Any] | None = None,
        **params: Any,
    ) -> dict[str, Any]:
        self.calls.append(
            {"model": model, "messages": messages, "extra_body": extra_body, **params}
        )
        if self.error is not None:
            raise self.error
        choices = []
        if self.content is not None:
            choices.append(
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": self.content},
                    "finish_reason": "stop",
                }
            )
        return {"id": "chatcmpl-1", "object": "chat.completion", "model": model, "choices": choices}


@pytest.fixture(autouse=True)
def _isolate_app_state():
    """Start every test with fresh limiters and no dependency overrides."""
    reset_rate_limiters()
    yield
    app.dependency_overrides.clear()
    reset_rate_limiters()


@pytest.fixture
def fake_backend() -> FakeBackend:
    backend = FakeBackend()
    app.dependency_overrides[get_backend] = lambda: backend
    return backend


@pytest.fixture
def fake_chat_client() -> FakeChatClient:
    chat_client = FakeChatClient()
    app.dependency_overrides[get_chat_client] = lambda: chat_client
    return chat_client


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def valid_api_key_headers() -> dict[str, str]:
    """Client key headers accepted by the proxy routes."""
    return {"apikey": "test-api-key-123"}


@pytest.fixture
def user_headers() -> dict[str, str]:
    return {"Authorization": "Bearer user-token"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": "Bearer admin-token"}
