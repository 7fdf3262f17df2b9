"""
Santelle - Supabase Client.

Low-level database access. All server-side queries use the service role
key (row level security is bypassed; never expose this client to users).
"""

from supabase import Client, create_client

from santelle.config import get_settings

# Singleton client instance
_service_client: Client | None = None


def get_service_client() -> Client:
    """
    Get the service-role Supabase client.

    Uses singleton pattern to reuse connection.
    """
    global _service_client

    if _service_client is None:
        settings = get_settings()
        if not settings.supabase_configured:
            raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        _service_client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _service_client


def reset_client() -> None:
    """Drop the cached client (tests, settings changes)."""
    global _service_client
    _service_client = None
