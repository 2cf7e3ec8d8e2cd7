"""Service layer for task categories."""

from __future__ import annotations

from dataclasses import dataclass

from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import ConflictError, NotFoundError
from ..models import Category, CategoryColor
from ..repositories import CategoryRepository, TaskRepository


@dataclass(slots=True)
class CategoryCount:
    category: Category
    pending_count: int


@dataclass(slots=True)
class CategoryOverview:
    """Categories with their pending counts plus the uncategorized remainder."""

    categories: list[CategoryCount]
    uncategorized_count: int


class CategoryService:
    """Owner-scoped category management."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repository = CategoryRepository(session)
        self._task_repository = TaskRepository(session)

    async def _require_category(self, category_id: int, owner_id: int) -> Category:
        category = await self._repository.get_for_owner(category_id, owner_id)
        if category is None:
            raise NotFoundError("Category not found.", details={"id": category_id})
        return category

    async def _ensure_name_available(self, name: str, owner_id: int) -> None:
        if await self._repository.get_by_name(name, owner_id) is not None:
            raise ConflictError(f'Category "{name}" already exists.', details={"name": name})

    async def list_categories(self, owner_id: int) -> CategoryOverview:
        categories = await self._repository.list_for_owner(owner_id)
        counts = await self._repository.count_pending_by_category(owner_id)
        return CategoryOverview(
            categories=[CategoryCount(category, counts.get(category.id, 0)) for category in categories],
            uncategorized_count=counts.get(None, 0),
        )

    async def create_category(
        self,
        *,
        owner_id: int,
        name: str,
        color: CategoryColor = CategoryColor.BLUE,
    ) -> Category:
        await self._ensure_name_available(name, owner_id)
        category = Category(name=name, color=color, owner_id=owner_id)
        await self._repository.add(category)
        await self._session.commit()
        await self._repository.refresh(category)
        return category

    async def update_category(
        self,
        category_id: int,
        owner_id: int,
        *,
        name: str | None = None,
        color: CategoryColor | None = None,
    ) -> Category:
        category = await self._require_category(category_id, owner_id)
        if name is not None and name != category.name:
            await self._ensure_name_available(name, owner_id)
            category.name = name
        if color is not None:
            category.color = color
        category.touch()
        await self._session.commit()
        await self._repository.refresh(category)
        return category

    async def delete_category(self, category_id: int, owner_id: int) -> None:
        """Delete a category; its tasks become uncategorized, never deleted."""
        category = await self._require_category(category_id, owner_id)
        # SQLite only honours ON DELETE SET NULL with foreign keys enabled.
        await self._task_repository.detach_category(owner_id, category_id)
        await self._repository.delete(category)
        await self._session.commit()
