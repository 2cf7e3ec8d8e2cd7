"""Same-origin named broadcast channels.

Every endpoint joined to a channel name receives what the others post. As with
browser ``BroadcastChannel``, the posting endpoint never hears its own message.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from .events import SyncMessage
from .transport import HandlerSet, SyncHandler, Unsubscribe

logger = logging.getLogger(__name__)


class BroadcastHub:
    """Process-local registry of channel endpoints, keyed by channel name."""

    def __init__(self) -> None:
        self._channels: dict[str, list["BroadcastChannelTransport"]] = defaultdict(list)

    def join(self, name: str, endpoint: "BroadcastChannelTransport") -> None:
        if endpoint not in self._channels[name]:
            self._channels[name].append(endpoint)

    def leave(self, name: str, endpoint: "BroadcastChannelTransport") -> None:
        members = self._channels.get(name)
        if not members:
            return
        if endpoint in members:
            members.remove(endpoint)
        if not members:
            self._channels.pop(name, None)

    def members(self, name: str) -> int:
        return len(self._channels.get(name, ()))

    def post(self, name: str, sender: "BroadcastChannelTransport", payload: dict) -> int:
        """Deliver ``payload`` to every endpoint except ``sender``."""
        receivers = [endpoint for endpoint in self._channels.get(name, ()) if endpoint is not sender]
        for endpoint in receivers:
            # Each receiver gets its own copy, like a structured clone.
            endpoint.receive(dict(payload))
        return len(receivers)


default_hub = BroadcastHub()


class BroadcastChannelTransport:
    """One surface's endpoint on a named broadcast channel."""

    def __init__(self, name: str, *, hub: BroadcastHub | None = None) -> None:
        self._name = name
        self._hub = hub if hub is not None else default_hub
        self._handlers = HandlerSet(f"broadcast:{name}")
        self._closed = False
        self._hub.join(name, self)

    @property
    def name(self) -> str:
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        return None

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._hub.leave(self._name, self)
        self._handlers.clear()

    async def publish(self, message: SyncMessage) -> None:
        if self._closed:
            raise RuntimeError(f"Broadcast channel {self._name!r} is closed.")
        delivered = self._hub.post(self._name, self, message.to_wire())
        logger.debug(
            "Broadcast sync message",
            extra={"channel": self._name, "event": message.type.value, "receivers": delivered},
        )

    def subscribe(self, handler: SyncHandler) -> Unsubscribe:
        return self._handlers.add(handler)

    def receive(self, payload: object) -> None:
        if self._closed:
            return
        self._handlers.dispatch(payload)


__all__ = ["BroadcastChannelTransport", "BroadcastHub", "default_hub"]
