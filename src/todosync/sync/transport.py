"""Transport protocol shared by every sync channel."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from .events import SyncMessage

logger = logging.getLogger(__name__)

SyncHandler = Callable[[SyncMessage], None]
Unsubscribe = Callable[[], None]


class NotificationTransport(Protocol):
    """Fan-out channel for invalidation signals."""

    async def start(self) -> None: ...

    async def close(self) -> None: ...

    async def publish(self, message: SyncMessage) -> None: ...

    def subscribe(self, handler: SyncHandler) -> Unsubscribe: ...


class HandlerSet:
    """Subscriber registry that parses raw payloads before dispatching."""

    def __init__(self, transport_name: str) -> None:
        self._transport_name = transport_name
        self._handlers: list[SyncHandler] = []

    def __len__(self) -> int:
        return len(self._handlers)

    def add(self, handler: SyncHandler) -> Unsubscribe:
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return _unsubscribe

    def clear(self) -> None:
        self._handlers.clear()

    def dispatch(self, raw: object) -> None:
        message = raw if isinstance(raw, SyncMessage) else SyncMessage.from_wire(raw)
        if message is None:
            logger.warning("Dropped unrecognised sync message", extra={"transport": self._transport_name})
            return
        for handler in list(self._handlers):
            try:
                handler(message)
            except Exception:
                logger.exception(
                    "Sync handler raised an exception",
                    extra={"transport": self._transport_name, "event": message.type.value},
                )


__all__ = ["HandlerSet", "NotificationTransport", "SyncHandler", "Unsubscribe"]
