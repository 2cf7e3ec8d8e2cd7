"""Client-side task identity.

A task is either still waiting for its create call (``PendingId``) or already
backed by a server row (``PersistedId``). Only the wire form folds the two into
one signed integer: placeholders travel as negative numbers, which the server
acknowledges without a lookup.
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass
from typing import Union

# Seeded from the clock so placeholders minted by different surfaces rarely
# collide; collisions are harmless since placeholders never leave one cache.
_pending_counter = itertools.count(int(time.time() * 1000))


@dataclass(frozen=True, slots=True)
class PendingId:
    """Identity of an optimistic row the server has not acknowledged."""

    local_id: int

    def __post_init__(self) -> None:
        if self.local_id <= 0:
            raise ValueError("Pending ids are positive local counters.")

    @property
    def is_persisted(self) -> bool:
        return False

    def to_wire(self) -> int:
        return -self.local_id


@dataclass(frozen=True, slots=True)
class PersistedId:
    """Identity of a server-assigned row."""

    server_id: int

    def __post_init__(self) -> None:
        if self.server_id <= 0:
            raise ValueError("Server ids are strictly positive.")

    @property
    def is_persisted(self) -> bool:
        return True

    def to_wire(self) -> int:
        return self.server_id


TaskId = Union[PendingId, PersistedId]


def new_pending_id() -> PendingId:
    return PendingId(next(_pending_counter))


def task_id_from_wire(value: int) -> TaskId:
    """Decode a signed wire id back into its tagged form."""
    if value > 0:
        return PersistedId(value)
    if value < 0:
        return PendingId(-value)
    raise ValueError("Task id 0 is not a valid identifier.")


__all__ = ["PendingId", "PersistedId", "TaskId", "new_pending_id", "task_id_from_wire"]
