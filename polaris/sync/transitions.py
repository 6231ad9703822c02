"""Pure state transitions for a record collection.

Each function maps ``(items, operation) -> items`` without touching I/O, so
the optimistic-apply step can be tested on its own. Inputs are never mutated.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Tuple

from polaris.protocols import NotFoundError
from polaris.types import LOCAL_ID_PREFIX, Record

Items = Tuple[Record, ...]


def generate_local_id() -> str:
    """Mint an id in the device-local namespace."""
    return f"{LOCAL_ID_PREFIX}{uuid.uuid4()}"


def new_record(owner_id: str, fields: Dict[str, Any], now: datetime) -> Record:
    return Record(
        id=generate_local_id(),
        owner_id=owner_id,
        fields=dict(fields),
        created_at=now,
        updated_at=now,
    )


def index_of(items: Sequence[Record], record_id: str) -> int:
    """Position of *record_id* in *items*.

    Raises:
        NotFoundError: If no record has that id.
    """
    for i, record in enumerate(items):
        if record.id == record_id:
            return i
    raise NotFoundError(record_id)


def apply_create(items: Sequence[Record], record: Record) -> Items:
    """Prepend *record*."""
    return (record,) + tuple(items)


def apply_update(
    items: Sequence[Record], record_id: str, partial: Dict[str, Any], now: datetime
) -> Items:
    """Merge *partial* into the matching record's fields.

    Raises:
        NotFoundError: If no record has that id.
    """
    i = index_of(items, record_id)
    updated = items[i].with_fields(partial, now)
    return tuple(items[:i]) + (updated,) + tuple(items[i + 1 :])


def apply_toggle(items: Sequence[Record], record_id: str, field_name: str, now: datetime) -> Items:
    """Flip a boolean field on the matching record.

    Raises:
        NotFoundError: If no record has that id.
        TypeError: If the field is not a boolean.
    """
    current = items[index_of(items, record_id)].get(field_name)
    if not isinstance(current, bool):
        raise TypeError(f"{field_name} is not a boolean field")
    return apply_update(items, record_id, {field_name: not current}, now)


def apply_delete(items: Sequence[Record], record_id: str) -> Items:
    """Drop the matching record.

    Raises:
        NotFoundError: If no record has that id.
    """
    i = index_of(items, record_id)
    return tuple(items[:i]) + tuple(items[i + 1 :])


def apply_replace(items: Sequence[Record], record_id: str, record: Record) -> Optional[Items]:
    """Swap the record with *record_id* for *record*, keeping its position.

    Returns None when *record_id* is no longer present.
    """
    try:
        i = index_of(items, record_id)
    except NotFoundError:
        return None
    return tuple(items[:i]) + (record,) + tuple(items[i + 1 :])


def adopt_server_identity(local: Record, confirmed: Record) -> Record:
    """Keep *local*'s payload but take id, owner and timestamps from the server."""
    return replace(
        local,
        id=confirmed.id,
        owner_id=confirmed.owner_id,
        created_at=confirmed.created_at,
        updated_at=confirmed.updated_at,
    )


@dataclass(frozen=True)
class JournalEntry:
    """A mutation applied while a load was still pending."""

    operation: str  # create, update or delete
    record_id: str
    record: Optional[Record] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    at: Optional[datetime] = None


def replay(items: Sequence[Record], entry: JournalEntry) -> Items:
    """Re-apply a journaled mutation to freshly loaded *items*.

    Creates are skipped when the id is already present and updates or
    deletes of missing records are dropped, so replaying onto a snapshot
    that already holds the change is harmless.
    """
    if entry.operation == "create":
        if any(r.id == entry.record_id for r in items):
            return tuple(items)
        return apply_create(items, entry.record)
    try:
        if entry.operation == "update":
            return apply_update(items, entry.record_id, entry.payload, entry.at)
        return apply_delete(items, entry.record_id)
    except NotFoundError:
        return tuple(items)
