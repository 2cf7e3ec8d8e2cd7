"""Broadcast channel carried over Redis pub/sub.

Used when surfaces live in separate processes. Redis echoes a publication to
every subscriber including the publisher's own connection, so each endpoint
stamps an ``origin`` and drops its own echoes.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from uuid import uuid4

from redis.asyncio import Redis
from redis.asyncio.client import PubSub

from ..core.config import Settings
from .events import SyncMessage
from .transport import HandlerSet, SyncHandler, Unsubscribe

logger = logging.getLogger(__name__)


class RedisBroadcastTransport:
    """Publish and listen for sync messages on one Redis channel."""

    def __init__(
        self,
        redis: Redis,
        channel: str,
        *,
        initial_backoff: float = 1.5,
        max_backoff: float = 10.0,
        owns_client: bool = False,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff
        self._owns_client = owns_client
        self._origin = uuid4().hex
        self._handlers = HandlerSet(f"redis:{channel}")
        self._pubsub: PubSub | None = None
        self._task: asyncio.Task[None] | None = None
        self._stopped = asyncio.Event()
        self._ready = asyncio.Event()

    @classmethod
    def from_settings(cls, settings: Settings, redis: Redis | None = None) -> "RedisBroadcastTransport":
        owns_client = redis is None
        client = redis or Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=False)
        return cls(
            client,
            settings.sync_channel_name,
            initial_backoff=settings.reconnect_initial_delay_seconds,
            max_backoff=settings.reconnect_max_delay_seconds,
            owns_client=owns_client,
        )

    @property
    def origin(self) -> str:
        return self._origin

    async def start(self) -> None:
        if self._task is not None:
            return
        self._stopped.clear()
        await self._initialise_pubsub()
        self._task = asyncio.create_task(self._listen_loop(), name=f"todosync-redis-{self._channel}")

    async def close(self) -> None:
        self._stopped.set()
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        await self._close_pubsub()
        self._handlers.clear()
        if self._owns_client:
            await self._redis.aclose()

    async def publish(self, message: SyncMessage) -> None:
        stamped = message.model_copy(update={"origin": self._origin})
        await self._redis.publish(self._channel, stamped.model_dump_json(exclude_none=True))

    def subscribe(self, handler: SyncHandler) -> Unsubscribe:
        return self._handlers.add(handler)

    async def wait_ready(self) -> None:
        await self._ready.wait()

    async def _close_pubsub(self) -> None:
        if self._pubsub:
            with contextlib.suppress(Exception):
                await self._pubsub.unsubscribe(self._channel)
                await self._pubsub.aclose()
            self._pubsub = None
        self._ready.clear()

    async def _initialise_pubsub(self) -> None:
        await self._close_pubsub()
        self._pubsub = self._redis.pubsub()
        await self._pubsub.subscribe(self._channel)
        self._ready.set()

    def _handle(self, data: object) -> None:
        message = SyncMessage.from_wire(data)
        if message is None:
            logger.warning("Dropped unrecognised sync message", extra={"channel": self._channel})
            return
        if message.origin == self._origin:
            return
        self._handlers.dispatch(message)

    async def _listen_loop(self) -> None:
        backoff = self._initial_backoff

        while not self._stopped.is_set():
            try:
                assert self._pubsub is not None
                async for message in self._pubsub.listen():
                    if self._stopped.is_set():
                        break
                    if message.get("type") != "message":
                        continue
                    self._handle(message.get("data"))
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Redis sync listener encountered an error; retrying")
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, self._max_backoff)
                with contextlib.suppress(Exception):
                    await self._initialise_pubsub()
            else:
                backoff = self._initial_backoff
                if not self._stopped.is_set():
                    # listen() only returns once the subscription is gone.
                    await self._initialise_pubsub()


__all__ = ["RedisBroadcastTransport"]
