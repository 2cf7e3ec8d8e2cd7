"""Cross-window invalidation signals.

Signals carry no task data: a receiver only learns that its cached lists are
stale and refetches them.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)


class SyncEvent(str, Enum):
    TODO_CREATED = "todo-created"
    TODO_UPDATED = "todo-updated"
    TODO_DELETED = "todo-deleted"
    TODO_SYNC = "todo-sync"


# Events the native host re-emits between renderers.
RELAYED_EVENTS = frozenset({SyncEvent.TODO_CREATED, SyncEvent.TODO_UPDATED, SyncEvent.TODO_DELETED})


class SyncMessage(BaseModel):
    """Wire envelope: ``{"type": "todo-sync"}``.

    ``origin`` is only set by transports that cannot exclude the sender on
    their own (Redis pub/sub echoes to every subscriber).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: SyncEvent
    origin: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_wire(cls, raw: object) -> "SyncMessage | None":
        """Parse a received payload, returning ``None`` for anything unrecognised."""
        try:
            if isinstance(raw, (str, bytes, bytearray)):
                return cls.model_validate_json(raw)
            return cls.model_validate(raw)
        except ValidationError:
            logger.debug("Ignoring malformed sync message", extra={"payload": repr(raw)[:200]})
            return None


__all__ = ["RELAYED_EVENTS", "SyncEvent", "SyncMessage"]
