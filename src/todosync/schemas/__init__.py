"""Pydantic schemas exposed by the RPC surface."""

from .category import (
    CategoryCreate,
    CategoryIdRequest,
    CategoryListResponse,
    CategoryPatch,
    CategoryRead,
    CategoryUpdateRequest,
    CategoryWithCount,
)
from .system import ErrorResponse, HealthCheckResponse, RootResponse, SuccessResponse
from .todo import (
    ClearCompletedResponse,
    ReorderItem,
    TodoCreate,
    TodoIdRequest,
    TodoListRequest,
    TodoListResponse,
    TodoPatch,
    TodoRead,
    TodoReorderRequest,
    TodoUpdateRequest,
)

__all__ = [
    "CategoryCreate",
    "CategoryIdRequest",
    "CategoryListResponse",
    "CategoryPatch",
    "CategoryRead",
    "CategoryUpdateRequest",
    "CategoryWithCount",
    "ClearCompletedResponse",
    "ErrorResponse",
    "HealthCheckResponse",
    "ReorderItem",
    "RootResponse",
    "SuccessResponse",
    "TodoCreate",
    "TodoIdRequest",
    "TodoListRequest",
    "TodoListResponse",
    "TodoPatch",
    "TodoRead",
    "TodoReorderRequest",
    "TodoUpdateRequest",
]
