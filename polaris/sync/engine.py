"""Optimistic local-first collection engine.

CollectionEngine owns the in-memory records of one entity kind and runs the
load/mutate protocol every data-backed widget shares:

- mutations are validated, then applied to ``items`` synchronously
- the full collection is mirrored to the local cache after every change
- in REMOTE mode the matching remote call is scheduled fire-and-forget
- a failed remote call degrades the session to LOCAL; nothing is rolled back
- mutations made while a load is pending are replayed onto its result

The engine never raises to its caller. Validation and remote failures end up
in ``state.error``; unknown ids are ignored.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from polaris.logging_config import log_degrade, log_load, log_reconcile
from polaris.protocols import (
    IdentityResolver,
    LocalCache,
    NotFoundError,
    RemoteCollectionService,
    ValidationError,
)
from polaris.storage.snapshot import read_snapshot, write_snapshot
from polaris.types import (
    LOCAL_OWNER_ID,
    CollectionState,
    EntityKind,
    Record,
    SyncMode,
    is_local_id,
    utc_now,
)

from .transitions import (
    JournalEntry,
    adopt_server_identity,
    apply_create,
    apply_delete,
    apply_replace,
    apply_toggle,
    apply_update,
    new_record,
    replay,
)

logger = logging.getLogger(__name__)

Listener = Callable[[CollectionState], None]


class CollectionEngine:
    """Local-first store for one entity kind.

    Args:
        kind: Entity description (cache key, validators, seed data, ...).
        cache: Durable local cache shared by all kinds on this device.
        identity: Resolves the current owner id on every ``load()``.
        remote: Remote collection service. None keeps the engine local-only.
        clock: Source of timestamps for optimistic records.
    """

    def __init__(
        self,
        kind: EntityKind,
        cache: LocalCache,
        identity: IdentityResolver,
        remote: Optional[RemoteCollectionService] = None,
        clock: Callable[[], Any] = utc_now,
    ):
        self.kind = kind
        self._cache = cache
        self._identity = identity
        self._remote = remote
        self._clock = clock

        self._state = CollectionState(is_loading=True)
        self._owner_id: Optional[str] = None
        self._listeners: List[Listener] = []
        self._inflight: Set[asyncio.Task] = set()
        # Bumped by every load(); writes from an older session never touch mode
        self._session = 0
        # Mutations made while a load is pending; None when no load is
        self._journal: Optional[List[JournalEntry]] = None
        self._loaded = False
        self._closed = False

    # === Reactive state ===

    @property
    def state(self) -> CollectionState:
        return self._state

    @property
    def items(self) -> Sequence[Record]:
        return self._state.items

    @property
    def mode(self) -> SyncMode:
        return self._state.mode

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def owner_id(self) -> Optional[str]:
        return self._owner_id

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with the new state after every change.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Detach from the widget.

        In-flight writes still finish and update cache/mode, but nobody is
        notified any more.
        """
        self._closed = True
        self._listeners.clear()

    def _set(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        if self._closed:
            return
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error(f"{self.kind.name} listener failed: {e}", exc_info=True)

    def _mirror(self, items: Sequence[Record]) -> None:
        write_snapshot(self._cache, self.kind.cache_key, items)

    def _commit(self, items: Sequence[Record]) -> None:
        """Optimistic apply: replace items, then mirror them to the cache.

        Before the first load completes ``items`` is a placeholder, so the
        mirror waits for the load to write the replayed collection.
        """
        self._set(items=tuple(items))
        if self._journal is None or self._loaded:
            self._mirror(self._state.items)

    # === Load ===

    async def load(self) -> CollectionState:
        """Resolve identity and populate ``items`` from remote, cache or seed.

        Starts a new session: a degraded engine goes back to REMOTE here if
        the owner is known and the remote list succeeds. A load overtaken by
        a newer one returns without touching state or cache.

        Mutations made while the load is pending are journaled and replayed
        onto whatever the load produces, then pushed if it ends in REMOTE.
        """
        self._session += 1
        session = self._session
        if self._journal is None:
            self._journal = []
        self._set(is_loading=True)

        owner_id = await self._resolve_owner()
        if session != self._session:
            logger.debug(f"Discarding superseded {self.kind.plural} load (identity)")
            return self._state
        self._owner_id = owner_id

        if owner_id is None or self._remote is None:
            items = self._finish_load(self._load_local(), SyncMode.LOCAL, None)
            log_load(self.kind.plural, SyncMode.LOCAL.value, len(items))
            return self._state

        try:
            fetched = tuple(await self._remote.list(owner_id))
        except Exception as e:
            if session != self._session:
                logger.debug(f"Discarding superseded {self.kind.plural} load: {e}")
                return self._state
            logger.warning(f"Loading {self.kind.plural} from remote failed, using local cache: {e}")
            message = f"Failed to load {self.kind.plural}"
            items = self._finish_load(self._load_local(), SyncMode.LOCAL, message)
            log_load(self.kind.plural, SyncMode.LOCAL.value, len(items), error=str(e))
            return self._state

        if session != self._session:
            logger.debug(f"Discarding superseded {self.kind.plural} load (list)")
            return self._state

        items = self._finish_load(fetched, SyncMode.REMOTE, None)
        log_load(self.kind.plural, SyncMode.REMOTE.value, len(items))
        return self._state

    def _finish_load(
        self, loaded: Sequence[Record], mode: SyncMode, error: Optional[str]
    ) -> Sequence[Record]:
        """Replay the journal onto *loaded*, publish it and mirror it."""
        journal, self._journal = self._journal or [], None
        items = tuple(loaded)
        for entry in journal:
            items = replay(items, entry)
        if journal:
            logger.info(f"Replayed {len(journal)} {self.kind.name} change(s) made during load")

        self._loaded = True
        self._set(items=items, mode=mode, error=error, is_loading=False)
        self._mirror(items)
        if mode is SyncMode.REMOTE and self._remote is not None:
            self._push_journal(journal, {r.id for r in loaded})
        return items

    def _push_journal(self, journal: List[JournalEntry], loaded_ids: Set[str]) -> None:
        """Send journaled changes that survived the replay to the remote."""
        created = set()
        for entry in journal:
            if entry.operation == "create":
                current = self._state.find(entry.record_id)
                if current is None:
                    continue
                created.add(entry.record_id)
                self._schedule(
                    self._persist_create(
                        current, dict(current.fields), self._owner_id, self._session
                    ),
                    "create",
                )
            elif entry.record_id in created or is_local_id(entry.record_id):
                # Provisional: its create already carries the latest fields
                continue
            elif entry.operation == "update":
                if self._state.find(entry.record_id) is not None:
                    self._schedule(
                        self._persist_update(entry.record_id, entry.payload, self._session),
                        "update",
                    )
            elif entry.operation == "delete" and entry.record_id in loaded_ids:
                self._schedule(self._persist_delete(entry.record_id, self._session), "delete")

    async def _resolve_owner(self) -> Optional[str]:
        try:
            return await self._identity.get_current_owner_id()
        except Exception as e:
            logger.warning(f"Identity resolution failed, continuing anonymously: {e}")
            return None

    def _load_local(self) -> tuple:
        """Cached snapshot if it has records, otherwise the seed set."""
        cached = read_snapshot(self._cache, self.kind.cache_key)
        if cached:
            return tuple(cached)
        seeded = tuple(self.kind.seed())
        logger.info(f"No cached {self.kind.plural}, seeding {len(seeded)} defaults")
        return seeded

    # === Mutations ===

    def create(self, fields: Dict[str, Any]) -> Optional[Record]:
        """Add a record.

        Returns:
            The optimistic record (``local-`` id), or None if validation failed.
        """
        self._clear_error()
        try:
            payload = self.kind.validate_create(dict(fields))
        except ValidationError as e:
            self.reject("create", e)
            return None

        record = new_record(self._owner_id or LOCAL_OWNER_ID, payload, self._clock())
        self._commit(apply_create(self._state.items, record))

        if self._journal is not None:
            self._journal.append(JournalEntry("create", record.id, record=record))
        elif self._state.mode is SyncMode.REMOTE and self._remote is not None:
            self._schedule(
                self._persist_create(record, payload, self._owner_id, self._session), "create"
            )
        return record

    def update(self, record_id: str, partial: Dict[str, Any]) -> Optional[Record]:
        """Merge *partial* into a record's fields.

        Returns:
            The updated record, or None for invalid input or an unknown id.
        """
        self._clear_error()
        try:
            payload = self.kind.validate_update(dict(partial))
        except ValidationError as e:
            self.reject("update", e)
            return None

        try:
            items = apply_update(self._state.items, record_id, payload, self._clock())
        except NotFoundError:
            logger.debug(f"Ignoring update of unknown {self.kind.name} {record_id}")
            return None
        return self._commit_update(record_id, items, payload)

    def toggle(self, record_id: str, field_name: str) -> Optional[Record]:
        """Flip a boolean field on a record.

        Returns:
            The updated record, or None for a non-boolean field or unknown id.
        """
        self._clear_error()
        try:
            items = apply_toggle(self._state.items, record_id, field_name, self._clock())
        except NotFoundError:
            logger.debug(f"Ignoring toggle of unknown {self.kind.name} {record_id}")
            return None
        except TypeError as e:
            self.reject("update", ValidationError(str(e), field_name))
            return None

        flipped = next(r for r in items if r.id == record_id).fields[field_name]
        return self._commit_update(record_id, items, {field_name: flipped})

    def delete(self, record_id: str) -> bool:
        """Remove a record.

        Returns:
            True if a record was removed, False for an unknown id.
        """
        self._clear_error()
        try:
            items = apply_delete(self._state.items, record_id)
        except NotFoundError:
            logger.debug(f"Ignoring delete of unknown {self.kind.name} {record_id}")
            return False

        self._commit(items)
        if self._journal is not None:
            self._journal.append(JournalEntry("delete", record_id))
        elif self._should_push(record_id, "delete"):
            self._schedule(self._persist_delete(record_id, self._session), "delete")
        return True

    def _commit_update(
        self, record_id: str, items: Sequence[Record], payload: Dict[str, Any]
    ) -> Optional[Record]:
        self._commit(items)
        updated = self._state.find(record_id)
        if self._journal is not None:
            self._journal.append(
                JournalEntry("update", record_id, payload=dict(payload), at=updated.updated_at)
            )
        elif self._should_push(record_id, "update"):
            self._schedule(self._persist_update(record_id, payload, self._session), "update")
        return updated

    def _should_push(self, record_id: str, operation: str) -> bool:
        if self._state.mode is not SyncMode.REMOTE or self._remote is None:
            return False
        if is_local_id(record_id):
            # Still provisional: the server has no such id yet
            logger.warning(
                f"{operation} of provisional {self.kind.name} {record_id} applied locally only; "
                "the remote copy will not reflect it"
            )
            return False
        return True

    def _clear_error(self) -> None:
        if self._state.error is not None:
            self._set(error=None)

    def reject(self, operation: str, error: ValidationError) -> None:
        """Surface a validation error without touching items."""
        logger.info(f"Rejected {operation} {self.kind.name}: {error}")
        self._set(error=str(error))

    # === Remote writes ===

    def _schedule(self, coro, operation: str) -> None:
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError as e:
            coro.close()
            self._on_remote_failure(operation, e, self._session)
            return
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def wait_idle(self) -> None:
        """Wait until every scheduled remote write has finished."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def _persist_create(
        self, provisional: Record, payload: Dict[str, Any], owner_id: str, session: int
    ):
        try:
            confirmed = await self._remote.create(owner_id, payload)
        except Exception as e:
            self._on_remote_failure("create", e, session)
            return

        if session != self._session:
            logger.info(f"Dropping confirmation of {provisional.id} from a previous session")
            return

        current = self._state.find(provisional.id)
        if current is None:
            logger.warning(
                f"Provisional {self.kind.name} {provisional.id} was removed before the server "
                f"confirmed it; remote record {confirmed.id} is orphaned"
            )
            return

        if current.fields != provisional.fields:
            logger.warning(
                f"Provisional {self.kind.name} {provisional.id} was edited before confirmation; "
                f"keeping local fields, remote record {confirmed.id} is stale"
            )
            spliced = adopt_server_identity(current, confirmed)
        else:
            spliced = confirmed

        items = apply_replace(self._state.items, provisional.id, spliced)
        self._commit(items)
        log_reconcile(self.kind.plural, provisional.id, confirmed.id)

    async def _persist_update(self, record_id: str, payload: Dict[str, Any], session: int):
        try:
            await self._remote.update(record_id, payload)
        except Exception as e:
            self._on_remote_failure("update", e, session)
            return
        # Server copy is not re-applied; the optimistic state stands
        self._mirror(self._state.items)

    async def _persist_delete(self, record_id: str, session: int):
        try:
            await self._remote.delete(record_id)
        except Exception as e:
            self._on_remote_failure("delete", e, session)
            return
        self._mirror(self._state.items)

    def _on_remote_failure(self, operation: str, error: Exception, session: int) -> None:
        """Degrade to LOCAL for the rest of the session. Nothing is rolled back."""
        if session != self._session:
            logger.info(f"Ignoring failed {operation} from a previous session: {error}")
            return

        logger.warning(
            f"Remote {operation} of {self.kind.name} failed, switching to local mode: {error}"
        )
        was_remote = self._state.mode is SyncMode.REMOTE
        self._set(
            mode=SyncMode.LOCAL,
            error=f"Failed to {operation} {self.kind.name} (using local mode)",
        )
        self._mirror(self._state.items)
        if was_remote:
            log_degrade(self.kind.plural, operation, str(error))
