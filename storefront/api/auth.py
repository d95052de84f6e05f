"""
Bearer-token identity for the wishlist and admin routes.

The storefront does not implement authentication itself. A provider maps an
access token to an Identity:
- StaticTokenIdentityProvider: tokens listed under auth.tokens in the config
  (local development, SQL backend, tests)
- SupabaseIdentityProvider: tokens issued by Supabase Auth, verified against
  GoTrue; the role comes from the users table
"""
from dataclasses import dataclass
from typing import Dict, Optional

from storefront.data.store import StorefrontStore
from storefront.utils.logger import get_logger
from storefront.utils.supabase_client import SupabaseClient

logger = get_logger("api.auth")

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class IdentityProvider:
    """Resolves an access token to an Identity, or None when the token is not valid."""

    def resolve(self, token: str) -> Optional[Identity]:
        raise NotImplementedError


class StaticTokenIdentityProvider(IdentityProvider):
    def __init__(self, tokens: Dict[str, Dict[str, str]]):
        self._tokens = dict(tokens)

    def resolve(self, token: str) -> Optional[Identity]:
        entry = self._tokens.get(token)
        if not entry or not entry.get("user_id"):
            return None
        return Identity(user_id=str(entry["user_id"]), role=entry.get("role", "user"))


class SupabaseIdentityProvider(IdentityProvider):
    def __init__(self, client: SupabaseClient, store: StorefrontStore):
        self._client = client
        self._store = store

    def resolve(self, token: str) -> Optional[Identity]:
        user = self._client.get_auth_user(token)
        if not user or not user.get("id"):
            logger.info("Supabase rejected access token")
            return None
        user_id = str(user["id"])
        profile = self._store.get_users([user_id]).get(user_id)
        role = profile.role if profile is not None else "user"
        return Identity(user_id=user_id, role=role)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an `Authorization: Bearer <token>` header, if present."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()

