"""Shared plumbing for widget adapters."""

from typing import Callable, Optional, Sequence

from polaris.protocols import IdentityResolver, LocalCache, RemoteCollectionService
from polaris.sync import CollectionEngine
from polaris.types import CollectionState, EntityKind, Record


class Widget:
    """A widget adapter bound to one collection engine.

    Subclasses set ``KIND`` and add entity-specific operations and views.
    They go through the engine for every change and add no persistence
    policy of their own.
    """

    KIND: EntityKind

    def __init__(
        self,
        cache: LocalCache,
        identity: IdentityResolver,
        remote: Optional[RemoteCollectionService] = None,
        engine: Optional[CollectionEngine] = None,
    ):
        self.engine = engine or CollectionEngine(self.KIND, cache, identity, remote)

    @property
    def state(self) -> CollectionState:
        return self.engine.state

    @property
    def items(self) -> Sequence[Record]:
        return self.engine.items

    async def load(self) -> CollectionState:
        return await self.engine.load()

    def subscribe(self, listener: Callable[[CollectionState], None]) -> Callable[[], None]:
        return self.engine.subscribe(listener)

    async def wait_idle(self) -> None:
        await self.engine.wait_idle()

    def close(self) -> None:
        self.engine.close()
