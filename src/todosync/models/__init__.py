"""Domain models exposed for the task store."""

from __future__ import annotations

from .category import CATEGORY_NAME_MAX_LENGTH, Category, CategoryBase, CategoryColor
from .common import TimestampMixin, utcnow
from .task import TASK_TEXT_MAX_LENGTH, Task, TaskBase
from .user import User, UserBase

__all__ = [
    "CATEGORY_NAME_MAX_LENGTH",
    "Category",
    "CategoryBase",
    "CategoryColor",
    "TASK_TEXT_MAX_LENGTH",
    "Task",
    "TaskBase",
    "TimestampMixin",
    "User",
    "UserBase",
    "utcnow",
]
