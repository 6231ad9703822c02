"""Shared helper functions for CLI commands."""

import json
from typing import Any, Optional, Sequence

from polaris.storage.snapshot import record_to_dict
from polaris.types import Record
from polaris.widgets import Widget


def print_json(data: Any) -> None:
    """Print data as formatted JSON."""
    print(json.dumps(data, indent=2, default=str))


def records_json(records: Sequence[Record]) -> None:
    print_json([record_to_dict(r) for r in records])


def resolve_ref(records: Sequence[Record], ref: str) -> Optional[Record]:
    """Find a record by list number (1-based), full id or unique id prefix."""
    if ref.isdigit():
        index = int(ref) - 1
        if 0 <= index < len(records):
            return records[index]
        return None

    for record in records:
        if record.id == ref:
            return record
    matches = [r for r in records if r.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    return None


def report(widget: Widget) -> int:
    """Print the widget's error, if any. Returns a process exit code."""
    error = widget.state.error
    if error:
        print(f"Error: {error}")
        return 1
    return 0


def not_found(noun: str, ref: str) -> int:
    print(f"No {noun} matching '{ref}'")
    return 1
