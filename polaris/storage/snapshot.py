"""Snapshot serialization for the local cache.

A snapshot is a JSON array of record dicts. Timestamps are ISO strings so a
round-trip reproduces records field for field, microseconds included.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from polaris.protocols import CacheError, LocalCache
from polaris.types import Record, format_datetime, parse_datetime

logger = logging.getLogger(__name__)


def record_to_dict(record: Record) -> Dict[str, Any]:
    return {
        "id": record.id,
        "owner_id": record.owner_id,
        "fields": dict(record.fields),
        "created_at": format_datetime(record.created_at),
        "updated_at": format_datetime(record.updated_at),
    }


def record_from_dict(data: Dict[str, Any]) -> Record:
    """Rebuild a record from its snapshot form.

    Raises:
        KeyError, TypeError, ValueError: If the dict is malformed.
    """
    fields = data.get("fields") or {}
    if not isinstance(fields, dict):
        raise TypeError(f"fields must be an object, got {type(fields).__name__}")
    return Record(
        id=str(data["id"]),
        owner_id=str(data["owner_id"]),
        fields=dict(fields),
        created_at=parse_datetime(data.get("created_at")),
        updated_at=parse_datetime(data.get("updated_at")),
    )


def serialize(items: Sequence[Record]) -> str:
    return json.dumps([record_to_dict(r) for r in items], ensure_ascii=False)


def deserialize(raw: str) -> List[Record]:
    """Parse a snapshot string.

    Raises:
        ValueError: If the snapshot is not a JSON array of records.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Snapshot is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise ValueError("Snapshot must be a JSON array")
    try:
        return [record_from_dict(item) for item in data]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Malformed record in snapshot: {e}") from e


def read_snapshot(cache: LocalCache, key: str) -> Optional[List[Record]]:
    """Load the snapshot under *key*.

    Returns None when nothing is stored or the stored value is unusable;
    a corrupt snapshot is logged and treated like an empty cache.
    """
    try:
        raw = cache.get(key)
    except CacheError as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return None
    if raw is None:
        return None
    try:
        return deserialize(raw)
    except ValueError as e:
        logger.warning(f"Discarding unreadable snapshot {key}: {e}")
        return None


def write_snapshot(cache: LocalCache, key: str, items: Sequence[Record]) -> bool:
    """Overwrite the snapshot under *key* with *items*.

    Returns False (after logging) if the cache rejected the write.
    """
    try:
        cache.set(key, serialize(items))
    except CacheError as e:
        logger.warning(f"Cache write failed for {key}: {e}")
        return False
    return True
