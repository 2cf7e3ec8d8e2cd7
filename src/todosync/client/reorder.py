"""Drag-and-drop reordering of pending tasks.

The engine is pure: it takes the cached pending list and the two ids from a
drag gesture and returns the renumbered list plus the wire batch. Placeholders
keep their new local slot but are left out of the batch since the server has
no row for them yet.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

from .ids import PersistedId, TaskId
from .models import Todo

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ReorderPlan:
    ordered: list[Todo]
    batch: list[tuple[PersistedId, int]]
    from_index: int
    to_index: int

    @property
    def is_noop(self) -> bool:
        return self.from_index == self.to_index


def sort_pending(todos: Sequence[Todo]) -> list[Todo]:
    """Display order: ``order`` ascending, newest first on ties."""
    return sorted(todos, key=lambda todo: (todo.order, -todo.created_at.timestamp()))


def array_move(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    moved = list(items)
    moved.insert(to_index, moved.pop(from_index))
    return moved


def plan_reorder(pending: Sequence[Todo], active_id: TaskId, over_id: TaskId) -> ReorderPlan | None:
    """Move ``active_id`` into the slot of ``over_id``.

    Returns ``None`` when either id is not among the pending tasks (for
    example, a drag that ended over a completed row).
    """
    ordered = sort_pending([todo for todo in pending if not todo.completed])
    positions = {todo.id: index for index, todo in enumerate(ordered)}
    if active_id not in positions or over_id not in positions:
        return None

    from_index = positions[active_id]
    to_index = positions[over_id]
    moved = array_move(ordered, from_index, to_index)
    renumbered = [
        todo if todo.order == index else todo.model_copy(update={"order": index})
        for index, todo in enumerate(moved)
    ]
    batch = [(todo.id, todo.order) for todo in renumbered if isinstance(todo.id, PersistedId)]
    return ReorderPlan(ordered=renumbered, batch=batch, from_index=from_index, to_index=to_index)


__all__ = ["ReorderPlan", "array_move", "plan_reorder", "sort_pending"]
