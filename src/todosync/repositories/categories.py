"""Repository for category persistence."""

from __future__ import annotations

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Category, Task
from .base import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """Owner-scoped queries for ``Category`` entities."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Category)

    async def list_for_owner(self, owner_id: int) -> list[Category]:
        result = await self.session.execute(
            select(Category).where(Category.owner_id == owner_id).order_by(Category.created_at, Category.id)
        )
        return list(result.scalars().all())

    async def get_for_owner(self, category_id: int, owner_id: int) -> Category | None:
        result = await self.session.execute(
            select(Category).where(Category.id == category_id, Category.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str, owner_id: int) -> Category | None:
        result = await self.session.execute(
            select(Category).where(Category.name == name, Category.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def count_pending_by_category(self, owner_id: int) -> dict[int | None, int]:
        """Return pending task counts keyed by category id (``None`` = uncategorized)."""
        result = await self.session.execute(
            select(Task.category_id, func.count())
            .where(Task.owner_id == owner_id, Task.completed.is_(False))
            .group_by(Task.category_id)
        )
        return {category_id: int(count) for category_id, count in result.all()}
