"""Backend interface.

Routes and services depend on this abstraction only; the Supabase client is
an implementation detail of ``SupabaseBackend``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity resolved from a bearer token."""

    id: str
    email: str | None = None


class AbstractBackend(ABC):
    """Operations the service needs from the backend-as-a-service."""

    @abstractmethod
    def get_user(self, token: str) -> AuthenticatedUser | None:
        """Resolve a user access token; None when the token is not valid."""
        raise NotImplementedError

    @abstractmethod
    def is_admin(self, user_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def update_user_password(self, user_id: str, password: str) -> dict[str, Any]:
        """Set a new password for a user.

        Raises:
            ValidationAppError: If the backend rejects the update.
        """
        raise NotImplementedError

    @abstractmethod
    def upload_file(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        """Store an object and return its public URL.

        Raises:
            UpstreamAppError: If the storage API rejects the upload.
        """
        raise NotImplementedError

    @abstractmethod
    def insert_record(self, table: str, record: dict[str, Any]) -> dict[str, Any] | None:
        """Insert a row and return it as stored.

        Raises:
            UpstreamAppError: If the insert fails.
        """
        raise NotImplementedError

    @abstractmethod
    def find_rate_limit_window(
        self, user_id: str, endpoint: str, since: datetime
    ) -> dict[str, Any] | None:
        """Return the counter row for (user, endpoint) started at or after ``since``."""
        raise NotImplementedError

    @abstractmethod
    def create_rate_limit_window(self, user_id: str, endpoint: str, started_at: datetime) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_rate_limit_count(self, row_id: Any, count: int) -> None:
        raise NotImplementedError
