"""Supabase client singleton.

``get_supabase()`` lazily builds one process-wide client from ``settings``;
every service reaches the Content Store (tables, storage, auth, rpc) through it.
"""

from supabase import Client, create_client

from app.core.config import settings

_client: Client | None = None


def get_supabase() -> Client:
    """Return the shared Supabase client, creating it on first call."""
    global _client
    if _client is None:
        _client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    return _client


def reset_supabase() -> None:
    """Drop the cached client so the next call rebuilds it."""
    global _client
    _client = None
