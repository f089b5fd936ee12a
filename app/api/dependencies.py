"""Process-wide collaborators injected into routes with ``Depends``.

Each provider builds its client lazily on first use and caches it, so a
missing secret only fails the routes that need it. Tests replace these via
``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

import httpx

from app.adapters.backend.base import AbstractBackend
from app.adapters.backend.factory import create_backend
from app.adapters.llm.base import AbstractChatClient
from app.adapters.llm.factory import create_chat_client


@lru_cache(maxsize=1)
def get_backend() -> AbstractBackend:
    return create_backend()


@lru_cache(maxsize=1)
def get_chat_client() -> AbstractChatClient:
    return create_chat_client()


def get_http_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for outbound image requests; None means the real network."""
    return None
