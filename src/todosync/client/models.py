"""Client-side views of server resources."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainValidator, field_validator
from pydantic.alias_generators import to_camel

from .ids import PendingId, PersistedId, TaskId, task_id_from_wire


def _coerce_task_id(value: object) -> TaskId:
    if isinstance(value, (PendingId, PersistedId)):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return task_id_from_wire(value)
    raise ValueError("Task ids are signed integers.")


TaskIdField = Annotated[TaskId, PlainValidator(_coerce_task_id)]


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    @field_validator("created_at", "updated_at", mode="after", check_fields=False)
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive timestamps; placeholders are aware.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Todo(_WireModel):
    """Immutable snapshot of a task as held in the local cache."""

    id: TaskIdField
    text: str
    completed: bool = False
    notes: str | None = None
    order: int = 0
    category_id: int | None = None
    owner_id: int | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_placeholder(self) -> bool:
        return isinstance(self.id, PendingId)


class TodoPage(_WireModel):
    todos: list[Todo]
    total: int
    has_more: bool
    next_offset: int | None = None


class Category(_WireModel):
    id: int
    name: str
    color: str
    owner_id: int | None = None
    pending_count: int = 0
    created_at: datetime
    updated_at: datetime


class CategoryListing(_WireModel):
    categories: list[Category] = Field(default_factory=list)
    uncategorized_count: int = 0


__all__ = ["Category", "CategoryListing", "Todo", "TodoPage"]
