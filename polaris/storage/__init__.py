"""polaris storage backends.

Local durable cache backends, snapshot serialization, and the supabase
binding for the remote collection service.
"""

from .cache import MemoryCache, SQLiteCache
from .remote import SupabaseCollectionService, create_supabase_client
from .snapshot import (
    deserialize,
    read_snapshot,
    record_from_dict,
    record_to_dict,
    serialize,
    write_snapshot,
)

__all__ = [
    # Cache backends
    "SQLiteCache",
    "MemoryCache",
    # Snapshots
    "serialize",
    "deserialize",
    "record_to_dict",
    "record_from_dict",
    "read_snapshot",
    "write_snapshot",
    # Remote
    "SupabaseCollectionService",
    "create_supabase_client",
]
