"""
Database client factory for Supabase.

The Guide data layer runs with the public anon key: every query is made on
behalf of the signed-in principal and Row Level Security is enforced by the
Gateway, not here.
"""

from typing import Optional
from supabase import acreate_client, AsyncClient

from .config import get_settings

# Module-level client cache
_client: Optional[AsyncClient] = None


async def get_supabase_client() -> AsyncClient:
    """
    Get the async Supabase client configured with the anon key.

    The client owns the auth session, so one instance is shared by every
    repository, the auth provider and the realtime feed.

    Returns:
        Async Supabase client
    """
    global _client

    if _client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_ANON_KEY environment variables."
            )
        _client = await acreate_client(
            settings.supabase_url,
            settings.supabase_anon_key,
        )

    return _client


def reset_client_cache() -> None:
    """
    Reset the cached database client.

    Useful for testing or when configuration changes.
    """
    global _client
    _client = None
