"""Cross-window invalidation bus."""

from .broadcast import BroadcastChannelTransport, BroadcastHub, default_hub
from .bus import SyncBus, build_sync_bus
from .events import RELAYED_EVENTS, SyncEvent, SyncMessage
from .ipc import EventSubscription, IpcBridge, IpcRelay, IpcRelayTransport
from .redis_channel import RedisBroadcastTransport
from .transport import NotificationTransport, SyncHandler, Unsubscribe

__all__ = [
    "BroadcastChannelTransport",
    "BroadcastHub",
    "EventSubscription",
    "IpcBridge",
    "IpcRelay",
    "IpcRelayTransport",
    "NotificationTransport",
    "RELAYED_EVENTS",
    "RedisBroadcastTransport",
    "SyncBus",
    "SyncEvent",
    "SyncHandler",
    "SyncMessage",
    "Unsubscribe",
    "build_sync_bus",
    "default_hub",
]
