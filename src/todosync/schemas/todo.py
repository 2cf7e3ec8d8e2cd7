"""Request and response bodies for the ``todo`` RPC namespace.

Field names travel as camelCase on the wire (``categoryId``, ``hasMore``)
while Python code keeps snake_case attributes.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..models.task import TASK_TEXT_MAX_LENGTH

TODO_READ_EXAMPLE = {
    "id": 7,
    "text": "Book dentist appointment",
    "completed": False,
    "notes": "Prefer mornings",
    "order": 0,
    "categoryId": None,
    "ownerId": 1,
    "createdAt": "2024-05-01T09:00:00Z",
    "updatedAt": "2024-05-01T09:00:00Z",
}


class CamelModel(BaseModel):
    """Base model speaking camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TodoRead(CamelModel):
    """Public representation of a task."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={"example": TODO_READ_EXAMPLE},
    )

    id: int
    text: str
    completed: bool
    notes: str | None = None
    order: int = 0
    category_id: int | None = None
    owner_id: int
    created_at: datetime
    updated_at: datetime


class TodoListRequest(CamelModel):
    limit: int = Field(default=10, ge=1, le=100)
    offset: int = Field(default=0, ge=0)
    completed: bool | None = None
    category_id: int | None = None


class TodoListResponse(CamelModel):
    """One page of tasks with cursor hints."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"todos": [TODO_READ_EXAMPLE], "total": 1, "hasMore": False},
        }
    )

    todos: list[TodoRead]
    total: int = Field(ge=0)
    has_more: bool
    next_offset: int | None = Field(default=None, ge=0)


class TodoCreate(CamelModel):
    """Payload for creating a new task."""

    text: str = Field(min_length=1, max_length=TASK_TEXT_MAX_LENGTH)
    notes: str | None = None
    category_id: int | None = None


class TodoPatch(CamelModel):
    """Partial update applied by ``todo.update``."""

    text: str | None = Field(default=None, min_length=1, max_length=TASK_TEXT_MAX_LENGTH)
    notes: str | None = None
    completed: bool | None = None
    category_id: int | None = None

    @model_validator(mode="after")
    def _reject_null_text(self) -> "TodoPatch":
        if "text" in self.model_fields_set and self.text is None:
            raise ValueError("Task text cannot be null.")
        if "completed" in self.model_fields_set and self.completed is None:
            raise ValueError("Completion flag cannot be null.")
        return self


class TodoUpdateRequest(CamelModel):
    id: int
    data: TodoPatch


class TodoIdRequest(CamelModel):
    id: int


class ReorderItem(CamelModel):
    id: int
    order: int = Field(ge=0)


class TodoReorderRequest(CamelModel):
    """Batch of ``{id, order}`` pairs applied atomically."""

    items: list[ReorderItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def _reject_duplicate_ids(self) -> "TodoReorderRequest":
        ids = [item.id for item in self.items]
        if len(ids) != len(set(ids)):
            raise ValueError("Reorder batch contains duplicate ids.")
        return self


class ClearCompletedResponse(CamelModel):
    deleted_count: int = Field(ge=0)


__all__ = [
    "CamelModel",
    "ClearCompletedResponse",
    "ReorderItem",
    "TodoCreate",
    "TodoIdRequest",
    "TodoListRequest",
    "TodoListResponse",
    "TodoPatch",
    "TodoRead",
    "TodoReorderRequest",
    "TodoUpdateRequest",
]
