"""Database repositories for encapsulating persistence logic."""

from __future__ import annotations

from .categories import CategoryRepository
from .tasks import TaskRepository
from .users import UserRepository

__all__ = ["CategoryRepository", "TaskRepository", "UserRepository"]
