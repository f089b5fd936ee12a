"""Hosted backend adapters (identity, storage, tables)."""

from app.adapters.backend.base import AbstractBackend, AuthenticatedUser
from app.adapters.backend.factory import create_backend

__all__ = [
    "AbstractBackend",
    "AuthenticatedUser",
    "create_backend",
]
