"""Collection engine and its pure state transitions."""

from .engine import CollectionEngine
from .transitions import (
    apply_create,
    apply_delete,
    apply_replace,
    apply_toggle,
    apply_update,
    generate_local_id,
)

__all__ = [
    "CollectionEngine",
    "apply_create",
    "apply_update",
    "apply_toggle",
    "apply_delete",
    "apply_replace",
    "generate_local_id",
]
