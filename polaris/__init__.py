"""
Polaris - Local-first personal dashboard widgets.

Tasks, habits, quick links and a brain dump note that keep working offline
and sync to supabase when signed in.
"""

from .dashboard import Dashboard
from .sync import CollectionEngine
from .types import CollectionState, Record, SyncMode

try:
    from importlib.metadata import version

    __version__ = version("polaris-dashboard")
except Exception:
    __version__ = "0.0.0"

__all__ = ["Dashboard", "CollectionEngine", "CollectionState", "Record", "SyncMode"]
