"""Dashboard composition.

Wires the shared cache, the identity resolver and one remote service per
entity kind into the four widgets.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from polaris.config import Settings, get_settings
from polaris.identity import StaticIdentityResolver, SupabaseIdentityResolver
from polaris.protocols import IdentityResolver, LocalCache
from polaris.storage import SQLiteCache, SupabaseCollectionService, create_supabase_client
from polaris.types import CollectionState
from polaris.widgets import (
    HABITS,
    LINKS,
    NOTES,
    TASKS,
    HabitsWidget,
    LinksWidget,
    NotesWidget,
    TasksWidget,
    Widget,
)

logger = logging.getLogger(__name__)


class Dashboard:
    """The widgets of one dashboard, sharing a cache and an identity.

    Args:
        cache: Local durable cache shared by every widget.
        identity: Owner resolver shared by every widget.
        client: Supabase client. None keeps every widget local-only.
        note_debounce_seconds: Autosave delay of the notes widget.
    """

    def __init__(
        self,
        cache: LocalCache,
        identity: IdentityResolver,
        client=None,
        note_debounce_seconds: float = 1.0,
    ):
        self.cache = cache
        self.identity = identity

        def remote(kind):
            return SupabaseCollectionService(client, kind) if client is not None else None

        self.tasks = TasksWidget(cache, identity, remote(TASKS))
        self.habits = HabitsWidget(cache, identity, remote(HABITS))
        self.links = LinksWidget(cache, identity, remote(LINKS))
        self.notes = NotesWidget(
            cache, identity, remote(NOTES), debounce_seconds=note_debounce_seconds
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Dashboard":
        """Build a dashboard from configuration.

        Without supabase credentials the dashboard runs anonymously on the
        local cache. ``owner_id`` overrides supabase identity resolution.
        """
        settings = settings or get_settings()
        cache = SQLiteCache(settings.resolved_cache_path())

        client = None
        if settings.remote_configured:
            client = create_supabase_client(settings)
        else:
            logger.info("Supabase not configured, running in local mode")

        if settings.owner_id or client is None:
            identity: IdentityResolver = StaticIdentityResolver(settings.owner_id)
        else:
            identity = SupabaseIdentityResolver(client, settings.supabase_access_token)

        return cls(
            cache,
            identity,
            client=client,
            note_debounce_seconds=settings.note_debounce_seconds,
        )

    @property
    def widgets(self) -> List[Widget]:
        return [self.tasks, self.habits, self.links, self.notes]

    async def load(self) -> Dict[str, CollectionState]:
        """Load every widget concurrently.

        Returns:
            Final state per entity kind, keyed by plural name.
        """
        states = await asyncio.gather(*(w.load() for w in self.widgets))
        return {w.KIND.plural: state for w, state in zip(self.widgets, states)}

    async def wait_idle(self) -> None:
        """Wait until every widget's remote writes have finished."""
        await asyncio.gather(*(w.wait_idle() for w in self.widgets))

    def close(self) -> None:
        for widget in self.widgets:
            widget.close()
        close_cache = getattr(self.cache, "close", None)
        if close_cache is not None:
            close_cache()
