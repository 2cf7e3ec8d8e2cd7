"""RPC procedures for the ``todo`` namespace.

Each procedure is a ``POST`` taking a JSON body, mirroring the client's typed
RPC calls one to one.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Body

from ...deps import CurrentUserDependency, DatabaseSessionDependency, require_user_id
from ...schemas import (
    ClearCompletedResponse,
    SuccessResponse,
    TodoCreate,
    TodoIdRequest,
    TodoListRequest,
    TodoListResponse,
    TodoRead,
    TodoReorderRequest,
    TodoUpdateRequest,
)
from ...services import TaskService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rpc/todo", tags=["todo"])


def _map_task(task) -> TodoRead:
    return TodoRead.model_validate(task)


@router.post("/list", response_model=TodoListResponse, summary="List tasks page by page")
async def list_todos(
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
    payload: Annotated[TodoListRequest | None, Body()] = None,
) -> TodoListResponse:
    query = payload or TodoListRequest()
    page = await TaskService(session).list_tasks(
        owner_id=require_user_id(current_user),
        limit=query.limit,
        offset=query.offset,
        completed=query.completed,
        category_id=query.category_id,
    )
    return TodoListResponse(
        todos=[_map_task(task) for task in page.todos],
        total=page.total,
        has_more=page.has_more,
        next_offset=page.next_offset,
    )


@router.post("/create", response_model=TodoRead, summary="Create a task")
async def create_todo(
    payload: TodoCreate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> TodoRead:
    task = await TaskService(session).create_task(
        owner_id=require_user_id(current_user),
        text=payload.text,
        notes=payload.notes,
        category_id=payload.category_id,
    )
    logger.info("Task created", extra={"task_id": task.id})
    return _map_task(task)


@router.post("/update", response_model=TodoRead | None, summary="Patch a task")
async def update_todo(
    payload: TodoUpdateRequest,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> TodoRead | None:
    task = await TaskService(session).update_task(
        payload.id,
        require_user_id(current_user),
        payload.data.model_dump(exclude_unset=True),
    )
    return _map_task(task) if task is not None else None


@router.post("/toggle", response_model=TodoRead | None, summary="Flip a task's completion")
async def toggle_todo(
    payload: TodoIdRequest,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> TodoRead | None:
    task = await TaskService(session).toggle_task(payload.id, require_user_id(current_user))
    return _map_task(task) if task is not None else None


@router.post("/delete", response_model=SuccessResponse, summary="Delete a task")
async def delete_todo(
    payload: TodoIdRequest,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> SuccessResponse:
    await TaskService(session).delete_task(payload.id, require_user_id(current_user))
    return SuccessResponse(success=True)


@router.post(
    "/clearCompleted",
    response_model=ClearCompletedResponse,
    summary="Delete every completed task",
)
async def clear_completed(
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> ClearCompletedResponse:
    deleted = await TaskService(session).clear_completed(require_user_id(current_user))
    logger.info("Cleared completed tasks", extra={"deleted_count": deleted})
    return ClearCompletedResponse(deleted_count=deleted)


@router.post("/reorder", response_model=SuccessResponse, summary="Persist a reorder batch")
async def reorder_todos(
    payload: TodoReorderRequest,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> SuccessResponse:
    await TaskService(session).reorder_tasks(
        require_user_id(current_user),
        [(item.id, item.order) for item in payload.items],
    )
    return SuccessResponse(success=True)
