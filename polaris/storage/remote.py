"""Supabase binding for the remote collection service.

The supabase client is synchronous; every query runs in a worker thread via
``asyncio.to_thread`` so the engine's event loop is never blocked.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, List

from supabase import Client, create_client

from polaris.protocols import RemoteUnavailable
from polaris.types import EntityKind, Record, parse_datetime, utc_now

if TYPE_CHECKING:
    from polaris.config import Settings

logger = logging.getLogger(__name__)

# Column holding the owner id on every collection table
OWNER_COLUMN = "user_id"


def create_supabase_client(settings: "Settings") -> Client:
    """Build a supabase client from settings.

    Raises:
        ValueError: If the url or key is missing.
    """
    if not settings.remote_configured:
        raise ValueError("POLARIS_SUPABASE_URL and POLARIS_SUPABASE_KEY must both be set")
    return create_client(settings.supabase_url, settings.supabase_key)


class SupabaseCollectionService:
    """Owner-scoped CRUD over one supabase table.

    Args:
        client: A supabase ``Client``.
        kind: The entity kind whose table and columns are used.
    """

    def __init__(self, client: Client, kind: EntityKind):
        self._client = client
        self.kind = kind

    def _row_to_record(self, row: Dict[str, Any]) -> Record:
        return Record(
            id=str(row["id"]),
            owner_id=str(row.get(OWNER_COLUMN) or ""),
            fields={name: row.get(name) for name in self.kind.field_names},
            created_at=parse_datetime(row.get("created_at")),
            updated_at=parse_datetime(row.get("updated_at")),
        )

    def _columns(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in fields.items() if k in self.kind.field_names}

    async def _run(self, action: str, query) -> Any:
        try:
            return await asyncio.to_thread(query)
        except Exception as e:
            logger.debug(f"{action} {self.kind.name} failed: {e}")
            raise RemoteUnavailable(f"{action} {self.kind.name} failed: {e}") from e

    async def list(self, owner_id: str) -> List[Record]:
        def _query():
            return (
                self._client.table(self.kind.table)
                .select("*")
                .eq(OWNER_COLUMN, owner_id)
                .order(self.kind.order_by, desc=not self.kind.ascending)
                .execute()
            )

        result = await self._run("List", _query)
        return [self._row_to_record(row) for row in result.data or []]

    async def create(self, owner_id: str, fields: Dict[str, Any]) -> Record:
        data = {OWNER_COLUMN: owner_id, **self._columns(fields)}

        def _insert():
            return self._client.table(self.kind.table).insert(data).execute()

        result = await self._run("Create", _insert)
        if not result.data:
            raise RemoteUnavailable(f"Create {self.kind.name} failed: no row returned")
        return self._row_to_record(result.data[0])

    async def update(self, record_id: str, partial: Dict[str, Any]) -> Record:
        data = {**self._columns(partial), "updated_at": utc_now().isoformat()}

        def _update():
            return self._client.table(self.kind.table).update(data).eq("id", record_id).execute()

        result = await self._run("Update", _update)
        if not result.data:
            raise RemoteUnavailable(f"Update {self.kind.name} failed: {record_id} not found")
        return self._row_to_record(result.data[0])

    async def delete(self, record_id: str) -> None:
        def _delete():
            return self._client.table(self.kind.table).delete().eq("id", record_id).execute()

        await self._run("Delete", _delete)
