"""
polaris Protocol Definitions
============================

Interface contracts between the collection engine and its collaborators.

Components and their roles:
- Local cache:     Device-scoped key/value store. One snapshot per entity kind.
- Remote service:  Owner-scoped CRUD API. Issues ids and timestamps.
- Identity:        Resolves the current owner id, or None when anonymous.
- Engine:          Owns the in-memory collection and the load/mutate protocol.

Error handling philosophy:
- Bad user input raises ValidationError before any state changes
- Every remote failure surfaces as RemoteUnavailable and degrades the session
- Missing mutation targets are NotFoundError internally and never escape
- The engine converts all of the above into ``state.error``; adapters never
  see an exception from a mutation
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from polaris.types import Record

# =============================================================================
# ERRORS
# =============================================================================


class PolarisError(Exception):
    """Base for all polaris errors."""

    pass


class ValidationError(PolarisError, ValueError):
    """Raised when user input is rejected before touching state."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message)
        self.field_name = field_name


class RemoteUnavailable(PolarisError):
    """Raised by remote bindings on any transport or service failure."""

    pass


class NotFoundError(PolarisError):
    """Raised when a mutation targets an id that is not in the collection."""

    def __init__(self, record_id: str):
        super().__init__(f"Record not found: {record_id}")
        self.record_id = record_id


class CacheError(PolarisError):
    """Raised by cache backends when a snapshot cannot be read or written."""

    pass


# =============================================================================
# COLLABORATORS
# =============================================================================


@runtime_checkable
class LocalCache(Protocol):
    """Durable key/value surface scoped to this device.

    Implementations: SQLiteCache, MemoryCache.
    Every write is a full overwrite of the value stored under *key*.
    """

    def get(self, key: str) -> Optional[str]:
        """Return the stored string, or None if nothing was written."""
        ...

    def set(self, key: str, value: str) -> None:
        """Replace whatever is stored under *key*."""
        ...


@runtime_checkable
class RemoteCollectionService(Protocol):
    """Owner-scoped CRUD API for one entity collection.

    Implementations: SupabaseCollectionService.
    Any exception raised by these methods is treated as "remote unavailable".
    """

    async def list(self, owner_id: str) -> List[Record]:
        """All records owned by *owner_id*, in display order."""
        ...

    async def create(self, owner_id: str, fields: Dict[str, Any]) -> Record:
        """Insert a record and return the server-confirmed copy."""
        ...

    async def update(self, record_id: str, partial: Dict[str, Any]) -> Record:
        """Apply *partial* to a record and return the server copy."""
        ...

    async def delete(self, record_id: str) -> None:
        """Remove a record."""
        ...


@runtime_checkable
class IdentityResolver(Protocol):
    """Yields the current owner id.

    Implementations: SupabaseIdentityResolver, StaticIdentityResolver.
    """

    async def get_current_owner_id(self) -> Optional[str]:
        """The signed-in owner id, or None when the user is anonymous."""
        ...
