"""Identity resolvers.

An identity resolver answers one question per mount: who owns the data?
``None`` means anonymous, which puts every widget in local mode.
"""

import asyncio
import logging
from typing import Optional

from supabase import Client

logger = logging.getLogger(__name__)


class StaticIdentityResolver:
    """Always resolves to the owner id it was built with (None = anonymous)."""

    def __init__(self, owner_id: Optional[str] = None):
        self.owner_id = owner_id

    async def get_current_owner_id(self) -> Optional[str]:
        return self.owner_id


class SupabaseIdentityResolver:
    """Resolves the signed-in supabase user.

    Auth failures are logged and resolve to anonymous rather than raising;
    widgets then fall back to their local cache.

    Args:
        client: A supabase ``Client``.
        access_token: JWT of an existing session. When omitted the client's
            current session is used.
    """

    def __init__(self, client: Client, access_token: Optional[str] = None):
        self._client = client
        self._access_token = access_token

    async def get_current_owner_id(self) -> Optional[str]:
        try:
            response = await asyncio.to_thread(self._client.auth.get_user, self._access_token)
        except Exception as e:
            logger.warning(f"Could not resolve current user, continuing anonymously: {e}")
            return None

        user = getattr(response, "user", None) if response else None
        if user is None:
            return None
        return str(user.id)
