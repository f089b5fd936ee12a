"""Factory for the configured backend client."""

from app.adapters.backend.base import AbstractBackend
from app.adapters.backend.supabase_backend import SupabaseBackend
from app.core.config import settings
from app.core.errors import ConfigurationAppError


def create_backend() -> AbstractBackend:
    """Build the Supabase backend from settings.

    Raises:
        ConfigurationAppError: If the project URL or service key is missing.
    """
    if not settings.supabase.url or not settings.supabase.service_role_key:
        raise ConfigurationAppError(
            code="backend_not_configured",
            message="Backend is not configured",
            details={"hint": "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY"},
        )

    return SupabaseBackend.from_credentials(
        url=settings.supabase.url,
        service_role_key=settings.supabase.service_role_key,
        profiles_table=settings.supabase.profiles_table,
        rate_limit_table=settings.supabase.rate_limit_table,
    )
