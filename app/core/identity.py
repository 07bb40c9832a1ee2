"""Bearer token verification against Supabase Auth."""

from dataclasses import dataclass
from typing import Protocol

from supabase import Client

from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class AuthContext:
    """Context object containing authenticated user info."""

    user_id: str
    token: str
    email: str | None = None


class IdentityProvider(Protocol):
    def verify(self, token: str) -> AuthContext | None: ...


class SupabaseIdentityProvider:
    """Validates access tokens issued by Supabase Auth."""

    def __init__(self, client: Client):
        self.client = client

    def verify(self, token: str) -> AuthContext | None:
        """
        Resolve a bearer token to its user.

        Returns None for expired, malformed or revoked tokens, and when the
        auth service cannot be reached.
        """
        try:
            # Validates the JWT signature and expiration server-side
            auth_response = self.client.auth.get_user(token)
        except Exception as e:
            logger.warning(f"Auth error: {e}")
            return None

        if not auth_response or not auth_response.user:
            return None

        user = auth_response.user
        return AuthContext(user_id=str(user.id), token=token, email=getattr(user, "email", None))
