"""Service layer exports."""

from .categories import CategoryCount, CategoryOverview, CategoryService
from .tasks import TaskPage, TaskService, is_placeholder_id
from .users import UserService

__all__ = [
    "CategoryCount",
    "CategoryOverview",
    "CategoryService",
    "TaskPage",
    "TaskService",
    "UserService",
    "is_placeholder_id",
]
