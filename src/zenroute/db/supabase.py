"""Supabase client used by the route history store.

Route history is optional: without ``ZENROUTE_SUPABASE_URL`` and
``ZENROUTE_SUPABASE_KEY`` the client is None and the history endpoints answer
503 while route evaluation keeps working.
"""

import logging
from functools import lru_cache

from supabase import Client, create_client

from ..config import settings


@lru_cache()
def get_supabase_client() -> Client | None:
    """Return the shared Supabase client, or None when history storage is not configured.

    The client is created once per process. Creating it does not contact the
    server, so the first route history query is where connection errors show up.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logging.warning("Supabase credentials not configured; route history is disabled")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logging.error(f"Failed to create Supabase client for route history: {e}")
        return None
