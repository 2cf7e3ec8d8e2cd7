"""RPC procedures for the ``category`` namespace."""

from __future__ import annotations

from fastapi import APIRouter

from ...deps import CurrentUserDependency, DatabaseSessionDependency, require_user_id
from ...schemas import (
    CategoryCreate,
    CategoryIdRequest,
    CategoryListResponse,
    CategoryRead,
    CategoryUpdateRequest,
    CategoryWithCount,
    SuccessResponse,
)
from ...services import CategoryService

router = APIRouter(prefix="/rpc/category", tags=["category"])


@router.post("/list", response_model=CategoryListResponse, summary="List categories with counts")
async def list_categories(
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> CategoryListResponse:
    overview = await CategoryService(session).list_categories(require_user_id(current_user))
    return CategoryListResponse(
        categories=[
            CategoryWithCount.model_validate(
                {**CategoryRead.model_validate(entry.category).model_dump(), "pending_count": entry.pending_count}
            )
            for entry in overview.categories
        ],
        uncategorized_count=overview.uncategorized_count,
    )


@router.post("/create", response_model=CategoryRead, summary="Create a category")
async def create_category(
    payload: CategoryCreate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> CategoryRead:
    category = await CategoryService(session).create_category(
        owner_id=require_user_id(current_user),
        name=payload.name,
        color=payload.color,
    )
    return CategoryRead.model_validate(category)


@router.post("/update", response_model=CategoryRead, summary="Rename or recolour a category")
async def update_category(
    payload: CategoryUpdateRequest,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> CategoryRead:
    category = await CategoryService(session).update_category(
        payload.id,
        require_user_id(current_user),
        name=payload.data.name,
        color=payload.data.color,
    )
    return CategoryRead.model_validate(category)


@router.post("/delete", response_model=SuccessResponse, summary="Delete a category")
async def delete_category(
    payload: CategoryIdRequest,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> SuccessResponse:
    await CategoryService(session).delete_category(payload.id, require_user_id(current_user))
    return SuccessResponse(success=True)
