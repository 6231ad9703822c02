"""
Shared record types for polaris.

Records, sync modes and the collection state every widget renders from.
These are the contract between the collection engine, the cache, the
remote service bindings and the widget adapters.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

# Prefix for ids minted on this device. Server ids never carry it.
LOCAL_ID_PREFIX = "local-"

# Owner recorded on records created while the user is anonymous
LOCAL_OWNER_ID = "local-user"

# Timestamp stamped on every seed record
SEED_TIMESTAMP = datetime(2024, 1, 1, tzinfo=timezone.utc)


# === Shared Utility Functions ===


def utc_now() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_datetime(s: Optional[str]) -> Optional[datetime]:
    """Parse an ISO datetime string, tolerating a trailing ``Z``.

    Naive values are assumed to be UTC.
    """
    if not s:
        return None
    parsed = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as an ISO string (None passes through)."""
    if dt is None:
        return None
    return dt.isoformat()


def is_local_id(record_id: str) -> bool:
    """True when *record_id* was generated on this device."""
    return record_id.startswith(LOCAL_ID_PREFIX)


# === Enums ===


class SyncMode(str, Enum):
    """Where mutations are persisted for the rest of a session."""

    REMOTE = "REMOTE"  # Remote service is authoritative, cache mirrors it
    LOCAL = "LOCAL"  # Cache only (anonymous user or degraded session)


# === Records ===


@dataclass(frozen=True)
class Record:
    """One entity owned by a user.

    ``fields`` holds the entity payload (task label, habit week, ...).
    Values must be JSON-native so the record survives a cache round-trip.
    """

    id: str
    owner_id: str
    fields: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_local(self) -> bool:
        return is_local_id(self.id)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def with_fields(self, partial: Dict[str, Any], updated_at: datetime) -> "Record":
        """Return a copy with *partial* merged into the payload."""
        merged = dict(self.fields)
        merged.update(partial)
        return replace(self, fields=merged, updated_at=updated_at)


@dataclass(frozen=True)
class CollectionState:
    """Everything a widget is allowed to see about its collection."""

    items: Tuple[Record, ...] = ()
    mode: SyncMode = SyncMode.LOCAL
    is_loading: bool = False
    error: Optional[str] = None

    def find(self, record_id: str) -> Optional[Record]:
        for record in self.items:
            if record.id == record_id:
                return record
        return None


# === Entity descriptions ===


@dataclass(frozen=True)
class EntityKind:
    """Per-entity configuration supplied by a widget adapter.

    The engine stays generic; everything entity specific (names, cache key,
    remote table, seed data, validation) lives here.

    Attributes:
        name: Singular noun used in messages ("task").
        plural: Plural noun used in messages ("tasks").
        cache_key: Fixed key the snapshot is stored under.
        table: Remote table holding the collection.
        field_names: Payload fields mapped to remote columns.
        order_by: Remote column the list is ordered by.
        ascending: Remote list order direction.
        seed: Factory for the default records used when nothing else exists.
        validate_create: Normalizes a create payload, raising ValidationError.
        validate_update: Normalizes a partial update, raising ValidationError.
    """

    name: str
    plural: str
    cache_key: str
    table: str
    field_names: Tuple[str, ...]
    seed: Callable[[], List[Record]]
    validate_create: Callable[[Dict[str, Any]], Dict[str, Any]]
    validate_update: Callable[[Dict[str, Any]], Dict[str, Any]]
    order_by: str = "created_at"
    ascending: bool = True


def seed_record(kind: str, index: int, fields: Dict[str, Any]) -> Record:
    """Build a deterministic seed record."""
    return Record(
        id=f"{LOCAL_ID_PREFIX}seed-{kind}-{index}",
        owner_id=LOCAL_OWNER_ID,
        fields=fields,
        created_at=SEED_TIMESTAMP,
        updated_at=SEED_TIMESTAMP,
    )
