"""Service layer encapsulating task-related operations."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm.exc import StaleDataError
from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import NotFoundError, ValidationError
from ..models import Task
from ..repositories import CategoryRepository, TaskRepository

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = frozenset({"text", "notes", "completed", "category_id"})


def is_placeholder_id(task_id: int) -> bool:
    """Negative ids belong to optimistic rows the server has never seen."""
    return task_id < 0


@dataclass(slots=True)
class TaskPage:
    """One page of tasks plus the cursor hints the client pages with."""

    todos: list[Task]
    total: int
    has_more: bool
    next_offset: int | None


class TaskService:
    """High-level business orchestration for ``Task`` entities.

    Every method takes the caller's ``owner_id``; a task owned by someone else
    is indistinguishable from a missing one.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repository = TaskRepository(session)
        self._category_repository = CategoryRepository(session)

    async def _require_task(self, task_id: int, owner_id: int) -> Task:
        task = await self._repository.get_for_owner(task_id, owner_id)
        if task is None:
            raise NotFoundError("Todo not found.", details={"id": task_id})
        return task

    async def _require_category(self, category_id: int | None, owner_id: int) -> None:
        if category_id is None:
            return
        category = await self._category_repository.get_for_owner(category_id, owner_id)
        if category is None:
            raise NotFoundError("Category not found.", details={"categoryId": category_id})

    async def _commit_changes(self, task: Task) -> Task:
        """Commit pending changes to ``task``, mapping a concurrent delete to ``NotFound``."""
        task_id = task.id
        try:
            await self._session.commit()
        except StaleDataError:
            await self._session.rollback()
            logger.info("Task vanished before the write landed", extra={"task_id": task_id})
            raise NotFoundError("Todo not found.", details={"id": task_id}) from None
        await self._repository.refresh(task)
        return task

    async def list_tasks(
        self,
        *,
        owner_id: int,
        limit: int = 10,
        offset: int = 0,
        completed: bool | None = None,
        category_id: int | None = None,
    ) -> TaskPage:
        """Return a page of the owner's tasks."""
        tasks, total = await self._repository.list_paginated(
            owner_id=owner_id,
            completed=completed,
            category_id=category_id,
            limit=limit,
            offset=offset,
        )
        has_more = offset + len(tasks) < total
        return TaskPage(
            todos=tasks,
            total=total,
            has_more=has_more,
            next_offset=offset + limit if has_more else None,
        )

    async def create_task(
        self,
        *,
        owner_id: int,
        text: str,
        notes: str | None = None,
        category_id: int | None = None,
    ) -> Task:
        """Create a new pending task at the head of the owner's list."""
        await self._require_category(category_id, owner_id)
        task = Task(owner_id=owner_id, text=text, notes=notes, category_id=category_id)
        await self._repository.add(task)
        await self._session.commit()
        await self._repository.refresh(task)
        return task

    async def update_task(self, task_id: int, owner_id: int, changes: Mapping[str, Any]) -> Task | None:
        """Apply a partial update; placeholder ids are acknowledged with ``None``."""
        if is_placeholder_id(task_id):
            return None
        task = await self._require_task(task_id, owner_id)
        if "category_id" in changes:
            await self._require_category(changes["category_id"], owner_id)
        for field, value in changes.items():
            if field in _MUTABLE_FIELDS:
                setattr(task, field, value)
        task.touch()
        return await self._commit_changes(task)

    async def toggle_task(self, task_id: int, owner_id: int) -> Task | None:
        if is_placeholder_id(task_id):
            return None
        task = await self._require_task(task_id, owner_id)
        task.completed = not task.completed
        task.touch()
        return await self._commit_changes(task)

    async def delete_task(self, task_id: int, owner_id: int) -> None:
        """Delete a task; placeholder ids succeed without touching the store."""
        if is_placeholder_id(task_id):
            return
        task = await self._require_task(task_id, owner_id)
        await self._repository.delete(task)
        await self._session.commit()

    async def clear_completed(self, owner_id: int) -> int:
        deleted = await self._repository.delete_completed(owner_id)
        await self._session.commit()
        return deleted

    async def reorder_tasks(self, owner_id: int, items: Iterable[tuple[int, int]]) -> int:
        """Persist a batch of ``(id, order)`` pairs all-or-nothing.

        Ownership of every persisted id is checked before the first write. A
        single foreign or missing id rejects the whole batch. Returns the
        number of rows written.
        """
        pairs = [(task_id, order) for task_id, order in items if not is_placeholder_id(task_id)]
        counts = Counter(task_id for task_id, _ in pairs)
        duplicates = sorted(task_id for task_id, count in counts.items() if count > 1)
        if duplicates:
            raise ValidationError("Reorder batch contains duplicate ids.", details={"ids": duplicates})
        orders = dict(pairs)
        if not orders:
            return 0

        try:
            owned = await self._repository.owned_ids(owner_id, orders)
            missing = sorted(set(orders) - owned)
            if missing:
                logger.warning(
                    "Rejected reorder batch with unknown ids",
                    extra={"owner_id": owner_id, "missing_ids": missing},
                )
                raise NotFoundError("Todo not found.", details={"ids": missing})
            vanished = await self._repository.apply_order(owner_id, orders)
            if vanished:
                logger.warning(
                    "Reorder batch lost rows to a concurrent delete",
                    extra={"owner_id": owner_id, "missing_ids": vanished},
                )
                raise NotFoundError("Todo not found.", details={"ids": vanished})
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return len(orders)
