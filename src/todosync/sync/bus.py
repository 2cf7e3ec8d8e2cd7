"""Composite sync bus that a surface publishes to and listens on."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from redis.asyncio import Redis

from ..core.config import Settings
from .broadcast import BroadcastChannelTransport, BroadcastHub
from .events import SyncEvent, SyncMessage
from .ipc import EventSubscription, IpcRelayTransport
from .redis_channel import RedisBroadcastTransport
from .transport import NotificationTransport, SyncHandler, Unsubscribe

logger = logging.getLogger(__name__)


class SyncBus:
    """Fan one mutation signal out over every configured transport.

    Broadcast transports carry the generic ``todo-sync`` signal; relay
    transports carry the specific ``todo-created``/``-updated``/``-deleted``
    event. A failing transport is logged and never blocks the others.
    """

    def __init__(
        self,
        broadcast: Sequence[NotificationTransport] = (),
        relays: Sequence[NotificationTransport] = (),
    ) -> None:
        self._broadcast = list(broadcast)
        self._relays = list(relays)

    @property
    def transports(self) -> list[NotificationTransport]:
        return [*self._broadcast, *self._relays]

    async def start(self) -> None:
        for transport in self.transports:
            await transport.start()

    async def close(self) -> None:
        for transport in self.transports:
            try:
                await transport.close()
            except Exception:
                logger.warning("Failed to close sync transport", exc_info=True)

    async def publish(self, event: SyncEvent) -> None:
        deliveries = [(transport, SyncMessage(type=SyncEvent.TODO_SYNC)) for transport in self._broadcast]
        if event is not SyncEvent.TODO_SYNC:
            deliveries.extend((transport, SyncMessage(type=event)) for transport in self._relays)
        for transport, message in deliveries:
            try:
                await transport.publish(message)
            except Exception:
                logger.warning(
                    "Sync transport failed to publish",
                    exc_info=True,
                    extra={"event": message.type.value, "transport": type(transport).__name__},
                )

    def subscribe(self, handler: SyncHandler) -> Unsubscribe:
        cleanups = [transport.subscribe(handler) for transport in self.transports]

        def _unsubscribe() -> None:
            for cleanup in cleanups:
                cleanup()

        return _unsubscribe


def build_sync_bus(
    settings: Settings,
    *,
    host: EventSubscription | None = None,
    hub: BroadcastHub | None = None,
    redis: Redis | None = None,
) -> SyncBus:
    """Pick transports from what the runtime offers.

    The broadcast channel is always present (in-process hub or Redis, per
    ``settings.sync_transport``); the IPC relay joins only when a host bridge
    was handed in.
    """
    broadcast: NotificationTransport
    if settings.sync_transport == "redis":
        broadcast = RedisBroadcastTransport.from_settings(settings, redis)
    else:
        broadcast = BroadcastChannelTransport(settings.sync_channel_name, hub=hub)

    relays: list[NotificationTransport] = []
    if host is not None:
        relays.append(IpcRelayTransport(host))

    logger.debug(
        "Sync bus assembled",
        extra={"broadcast": type(broadcast).__name__, "ipc": host is not None},
    )
    return SyncBus([broadcast], relays)


__all__ = ["SyncBus", "build_sync_bus"]
