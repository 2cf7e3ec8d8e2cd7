"""Native IPC relay between a desktop host and its renderer windows.

The host process owns an ``IpcRelay``. Each renderer talks to it through an
``EventSubscription`` port (the bridge object a preload script would expose):
``send`` hands an event to the host, which re-emits it to every *other*
renderer; ``on`` registers a listener and returns its cleanup function.
"""

from __future__ import annotations

import itertools
import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from typing import Protocol

from .events import RELAYED_EVENTS, SyncEvent, SyncMessage
from .transport import HandlerSet, SyncHandler, Unsubscribe

logger = logging.getLogger(__name__)

IpcListener = Callable[[], None]


class EventSubscription(Protocol):
    """Renderer-side capability for host events."""

    def on(self, channel: str, callback: IpcListener) -> Unsubscribe: ...

    def send(self, channel: str) -> None: ...


class IpcRelay:
    """Host side: fans renderer events out to the other renderers."""

    def __init__(self, channels: Iterable[SyncEvent] = RELAYED_EVENTS) -> None:
        self._allowed = frozenset(event.value for event in channels)
        self._bridges: list[IpcBridge] = []
        self._ids = itertools.count(1)

    @property
    def renderers(self) -> int:
        return len(self._bridges)

    def connect(self, renderer_id: str | None = None) -> "IpcBridge":
        bridge = IpcBridge(self, renderer_id or f"renderer-{next(self._ids)}")
        self._bridges.append(bridge)
        return bridge

    def disconnect(self, bridge: "IpcBridge") -> None:
        if bridge in self._bridges:
            self._bridges.remove(bridge)

    def relay(self, sender: "IpcBridge", channel: str) -> int:
        if channel not in self._allowed:
            logger.warning("Refused to relay IPC channel", extra={"channel": channel, "renderer": sender.renderer_id})
            return 0
        receivers = [bridge for bridge in self._bridges if bridge is not sender]
        for bridge in receivers:
            bridge.deliver(channel)
        return len(receivers)


class IpcBridge:
    """Renderer endpoint handed out by ``IpcRelay.connect``."""

    def __init__(self, relay: IpcRelay, renderer_id: str) -> None:
        self._relay = relay
        self.renderer_id = renderer_id
        self._listeners: dict[str, list[IpcListener]] = defaultdict(list)
        self._closed = False

    def on(self, channel: str, callback: IpcListener) -> Unsubscribe:
        self._listeners[channel].append(callback)

        def _cleanup() -> None:
            listeners = self._listeners.get(channel, [])
            if callback in listeners:
                listeners.remove(callback)

        return _cleanup

    def send(self, channel: str) -> None:
        if self._closed:
            return
        self._relay.relay(self, channel)

    def deliver(self, channel: str) -> None:
        if self._closed:
            return
        for callback in list(self._listeners.get(channel, ())):
            try:
                callback()
            except Exception:
                logger.exception("IPC listener raised an exception", extra={"channel": channel})

    def close(self) -> None:
        self._closed = True
        self._listeners.clear()
        self._relay.disconnect(self)


class IpcRelayTransport:
    """Sync transport riding on a renderer's ``EventSubscription`` port."""

    def __init__(self, bridge: EventSubscription) -> None:
        self._bridge = bridge
        self._handlers = HandlerSet("ipc")
        self._cleanups = [
            bridge.on(event.value, self._listener_for(event))
            for event in sorted(RELAYED_EVENTS, key=lambda item: item.value)
        ]

    def _listener_for(self, event: SyncEvent) -> IpcListener:
        def _listener() -> None:
            self._handlers.dispatch(SyncMessage(type=event))

        return _listener

    async def start(self) -> None:
        return None

    async def close(self) -> None:
        for cleanup in self._cleanups:
            cleanup()
        self._cleanups = []
        self._handlers.clear()

    async def publish(self, message: SyncMessage) -> None:
        # The host only relays the specific task events.
        if message.type in RELAYED_EVENTS:
            self._bridge.send(message.type.value)

    def subscribe(self, handler: SyncHandler) -> Unsubscribe:
        return self._handlers.add(handler)


__all__ = ["EventSubscription", "IpcBridge", "IpcRelay", "IpcRelayTransport"]
