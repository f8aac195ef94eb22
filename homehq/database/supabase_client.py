import logging
from typing import Any, Optional

from supabase import create_client, Client

from homehq.config.settings import Settings

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised at startup when the persistence backend cannot be built."""


class SupabaseGateway:
    """Builds Supabase clients for the app.

    One instance is created by the app factory and kept on ``app.state``.
    Requests get their own client, authorised with the caller's JWT, so the
    row-level security policies on the project see the acting user.
    """

    def __init__(self, settings: Settings):
        if not settings.supabase_url or not settings.supabase_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY must be set when DATABASE_BACKEND=supabase")
        self.settings = settings
        self._anon_client: Optional[Client] = None

    def get_client(self) -> Client:
        """Anonymous client; used for auth calls that carry no user session yet."""
        if self._anon_client is None:
            self._anon_client = create_client(self.settings.supabase_url, self.settings.supabase_key)
        return self._anon_client

    def client_for(self, token: Optional[str]) -> Client:
        if not token:
            return self.get_client()
        client = create_client(self.settings.supabase_url, self.settings.supabase_key)
        client.postgrest.auth(token)
        return client

    def close(self):
        self._anon_client = None


def maybe_row(response: Any) -> Optional[dict]:
    """Row from a ``maybe_single()`` query, or None.

    Depending on the postgrest-py release, an empty ``maybe_single()`` result
    is either ``None`` or a response whose ``data`` is ``None``.
    """
    if response is None:
        return None
    return response.data or None
