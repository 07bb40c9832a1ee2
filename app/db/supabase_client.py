"""Supabase client construction.

One client is created per process by the service container and shared by the
key-value store and the identity provider.
"""

from supabase import Client, create_client

from app.core.config import Settings


def create_supabase(settings: Settings) -> Client:
    """
    Build a Supabase client authenticated with the service role key.

    Args:
        settings: Application settings carrying the project URL and key

    Returns:
        Supabase client

    Raises:
        RuntimeError: If client initialization fails
    """
    try:
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e
