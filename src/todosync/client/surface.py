"""One open window of the task list.

A surface owns an RPC client, a query cache, a mutation layer and a sync bus
subscription. Mutations it performs signal the bus; signals from other
surfaces invalidate its cache.
"""

from __future__ import annotations

import logging

import httpx

from ..core.config import Settings
from ..sync import BroadcastHub, EventSubscription, SyncBus, SyncMessage, build_sync_bus
from .cache import TodoQueryCache
from .models import Todo
from .mutations import TodoMutations
from .rpc import TodoRpcClient

logger = logging.getLogger(__name__)


class TodoSurface:
    def __init__(
        self,
        rpc: TodoRpcClient,
        bus: SyncBus,
        *,
        name: str = "main",
        pending_limit: int = 100,
        completed_limit: int = 10,
    ) -> None:
        self.name = name
        self.rpc = rpc
        self.bus = bus
        self.cache = TodoQueryCache(rpc, pending_limit=pending_limit, completed_limit=completed_limit)
        self.mutations = TodoMutations(self.cache, rpc, bus)
        self._unsubscribe = None
        self._started = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        name: str = "main",
        credential: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        host: EventSubscription | None = None,
        hub: BroadcastHub | None = None,
    ) -> "TodoSurface":
        rpc = TodoRpcClient.from_settings(settings, credential=credential, transport=transport)
        bus = build_sync_bus(settings, host=host, hub=hub)
        return cls(
            rpc,
            bus,
            name=name,
            pending_limit=settings.pending_page_limit,
            completed_limit=settings.completed_page_limit,
        )

    @property
    def pending(self) -> list[Todo]:
        return self.cache.pending

    @property
    def completed(self) -> list[Todo]:
        return self.cache.completed

    @property
    def started(self) -> bool:
        return self._started

    def _on_signal(self, message: SyncMessage) -> None:
        logger.debug("Sync signal received", extra={"surface": self.name, "event": message.type.value})
        self.cache.invalidate()

    async def start(self) -> None:
        """Join the sync bus and load the initial lists."""
        if self._started:
            return
        await self.bus.start()
        self._unsubscribe = self.bus.subscribe(self._on_signal)
        self._started = True
        await self.cache.refetch()
        logger.info("Surface started", extra={"surface": self.name})

    async def settled(self) -> None:
        """Wait until refetches triggered by sync signals have finished."""
        await self.cache.wait_idle()

    async def close(self, *, close_rpc: bool = True) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.cache.wait_idle()
        await self.bus.close()
        if close_rpc:
            await self.rpc.aclose()
        self._started = False
        logger.info("Surface closed", extra={"surface": self.name})

    async def __aenter__(self) -> "TodoSurface":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


__all__ = ["TodoSurface"]
