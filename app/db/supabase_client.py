"""Service-role Supabase client shared by the chat repository, PDF storage and auth."""

from functools import lru_cache

from supabase import Client, create_client

from app.core.config import get_settings


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Build the service-role client once per process.

    The service role bypasses row-level security, so every query in ``app.db`` filters
    by conversation or user explicitly.

    Raises:
        RuntimeError: If SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY are unusable
    """
    settings = get_settings()
    try:
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        raise RuntimeError(f"Supabase client for {settings.SUPABASE_URL} not created: {e}") from e
