"""Request and response bodies for the ``category`` RPC namespace."""

from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict, Field, field_validator, model_validator

from ..models.category import CATEGORY_NAME_MAX_LENGTH, CategoryColor
from .todo import CamelModel


class CategoryRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: CategoryColor
    owner_id: int
    created_at: datetime
    updated_at: datetime


class CategoryWithCount(CategoryRead):
    """Category plus the number of pending tasks filed under it."""

    pending_count: int = Field(default=0, ge=0)


class CategoryListResponse(CamelModel):
    categories: list[CategoryWithCount]
    uncategorized_count: int = Field(ge=0)


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=CATEGORY_NAME_MAX_LENGTH)
    color: CategoryColor = Field(default=CategoryColor.BLUE)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class CategoryPatch(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=CATEGORY_NAME_MAX_LENGTH)
    color: CategoryColor | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _ensure_payload_not_empty(self) -> "CategoryPatch":
        if not self.model_dump(exclude_unset=True, exclude_none=True):
            raise ValueError("At least one field must be provided for update.")
        return self


class CategoryUpdateRequest(CamelModel):
    id: int
    data: CategoryPatch


class CategoryIdRequest(CamelModel):
    id: int


__all__ = [
    "CategoryCreate",
    "CategoryIdRequest",
    "CategoryListResponse",
    "CategoryPatch",
    "CategoryRead",
    "CategoryUpdateRequest",
    "CategoryWithCount",
]
