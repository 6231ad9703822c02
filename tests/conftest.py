"""
Pytest fixtures and test doubles for polaris tests.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from polaris.config import get_settings
from polaris.identity import StaticIdentityResolver
from polaris.protocols import CacheError, RemoteUnavailable
from polaris.storage import MemoryCache
from polaris.types import Record

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeRemote:
    """In-memory remote collection service.

    Server ids are ``srv-1``, ``srv-2``, ... Each ``fail_*`` flag makes the
    matching call raise RemoteUnavailable. When ``gate`` is set, writes wait
    on it before completing so tests can act while a write is in flight;
    ``list_gate`` does the same for loads.
    """

    def __init__(self, rows: Optional[List[Record]] = None):
        self.rows: List[Record] = list(rows or [])
        self.calls: List[tuple] = []
        self.fail_list = False
        self.fail_create = False
        self.fail_update = False
        self.fail_delete = False
        self.gate: Optional[asyncio.Event] = None
        self.list_gate: Optional[asyncio.Event] = None
        self._next_id = 1

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()

    async def list(self, owner_id: str) -> List[Record]:
        self.calls.append(("list", owner_id))
        if self.list_gate is not None:
            await self.list_gate.wait()
        if self.fail_list:
            raise RemoteUnavailable("network down")
        return [r for r in self.rows if r.owner_id == owner_id]

    async def create(self, owner_id: str, fields: Dict[str, Any]) -> Record:
        self.calls.append(("create", owner_id, dict(fields)))
        await self._wait()
        if self.fail_create:
            raise RemoteUnavailable("insert rejected")
        stamp = FIXED_NOW + timedelta(seconds=self._next_id)
        record = Record(
            id=f"srv-{self._next_id}",
            owner_id=owner_id,
            fields=dict(fields),
            created_at=stamp,
            updated_at=stamp,
        )
        self._next_id += 1
        self.rows.append(record)
        return record

    async def update(self, record_id: str, partial: Dict[str, Any]) -> Record:
        self.calls.append(("update", record_id, dict(partial)))
        await self._wait()
        if self.fail_update:
            raise RemoteUnavailable("update rejected")
        for i, row in enumerate(self.rows):
            if row.id == record_id:
                self.rows[i] = row.with_fields(partial, FIXED_NOW)
                return self.rows[i]
        raise RemoteUnavailable(f"{record_id} not found")

    async def delete(self, record_id: str) -> None:
        self.calls.append(("delete", record_id))
        await self._wait()
        if self.fail_delete:
            raise RemoteUnavailable("delete rejected")
        self.rows = [r for r in self.rows if r.id != record_id]

    def writes(self) -> List[tuple]:
        return [c for c in self.calls if c[0] != "list"]


class FailingCache(MemoryCache):
    """Cache whose writes always fail."""

    def set(self, key: str, value: str) -> None:
        raise CacheError("disk full")


def server_record(record_id: str, fields: Dict[str, Any], owner_id: str = "user-1") -> Record:
    return Record(
        id=record_id,
        owner_id=owner_id,
        fields=dict(fields),
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


@pytest.fixture(autouse=True)
def polaris_home(tmp_path, monkeypatch):
    """Keep logs and caches out of the real home directory."""
    home = tmp_path / "polaris-home"
    monkeypatch.setenv("POLARIS_DATA_DIR", str(home))
    get_settings.cache_clear()
    yield home
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_polaris_logger():
    """Remove handlers added by setup_polaris_logging."""
    logger = logging.getLogger("polaris")
    yield
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def signed_in():
    return StaticIdentityResolver("user-1")


@pytest.fixture
def anonymous():
    return StaticIdentityResolver(None)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW
