"""Repository for interacting with task persistence models."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from sqlalchemy import delete, func, update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Task, utcnow
from .base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Owner-scoped persistence operations for ``Task`` rows.

    Every query carries an ``owner_id`` predicate; nothing in here looks a task
    up by primary key alone.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Task)

    @staticmethod
    def _ordering(completed: bool | None) -> tuple:
        if completed is True:
            # Most recently completed first, mirroring how a toggle prepends.
            return (col(Task.updated_at).desc(), col(Task.id).desc())
        return (col(Task.order).asc(), col(Task.created_at).desc(), col(Task.id).desc())

    async def list_paginated(
        self,
        *,
        owner_id: int,
        completed: bool | None = None,
        category_id: int | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Task], int]:
        """Return one page of the owner's tasks plus the unpaginated total."""
        filters = [Task.owner_id == owner_id]
        if completed is not None:
            filters.append(Task.completed == completed)
        if category_id is not None:
            filters.append(Task.category_id == category_id)

        query = select(Task).where(*filters).order_by(*self._ordering(completed)).limit(limit).offset(offset)
        result = await self.session.execute(query)
        tasks = list(result.scalars().all())

        count_query = select(func.count()).select_from(Task).where(*filters)
        total_result = await self.session.execute(count_query)
        return tasks, int(total_result.scalar_one())

    async def get_for_owner(self, task_id: int, owner_id: int) -> Task | None:
        """Retrieve a task by ID ensuring it belongs to the provided owner."""
        result = await self.session.execute(
            select(Task).where(Task.id == task_id, Task.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def owned_ids(self, owner_id: int, task_ids: Iterable[int]) -> set[int]:
        """Return the subset of ``task_ids`` that belong to ``owner_id``."""
        ids = list(task_ids)
        if not ids:
            return set()
        result = await self.session.execute(
            select(Task.id).where(col(Task.id).in_(ids), Task.owner_id == owner_id)
        )
        return {int(task_id) for task_id in result.scalars().all()}

    async def apply_order(self, owner_id: int, orders: Mapping[int, int]) -> list[int]:
        """Write ``order`` values without committing.

        Returns the ids whose update matched no row, so the caller can roll the
        batch back.
        """
        now = utcnow()
        unmatched: list[int] = []
        for task_id, order in orders.items():
            result = await self.session.execute(
                update(Task)
                .where(col(Task.id) == task_id, col(Task.owner_id) == owner_id)
                .values(order=order, updated_at=now)
            )
            if result.rowcount != 1:
                unmatched.append(task_id)
        return sorted(unmatched)

    async def delete_completed(self, owner_id: int) -> int:
        """Delete every completed task of the owner, returning the row count."""
        result = await self.session.execute(
            delete(Task).where(col(Task.owner_id) == owner_id, col(Task.completed).is_(True))
        )
        return int(result.rowcount or 0)

    async def detach_category(self, owner_id: int, category_id: int) -> int:
        """Null ``category_id`` on every task that references the category."""
        result = await self.session.execute(
            update(Task)
            .where(col(Task.owner_id) == owner_id, col(Task.category_id) == category_id)
            .values(category_id=None)
        )
        return int(result.rowcount or 0)


__all__ = ["TaskRepository"]
