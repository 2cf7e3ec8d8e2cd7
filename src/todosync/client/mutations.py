"""Optimistic task mutations.

Every operation follows the same arc:

1. apply the change to the local cache so the surface updates immediately;
2. call the server;
3. reconcile the cache with the server's answer, or roll it back on error;
4. settle: refetch the authoritative lists and tell the other surfaces.

Settle runs whatever the outcome and never raises. Errors reach only the
caller of the mutation; other surfaces converge through the refetch they get
signalled to do.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from ..sync import SyncBus, SyncEvent
from .cache import CacheSnapshot, TodoQueryCache
from .errors import NotFoundRpcError
from .ids import PersistedId, TaskId, new_pending_id
from .models import Todo
from .reorder import ReorderPlan, plan_reorder
from .rpc import TodoRpcClient

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = frozenset({"text", "notes", "completed", "category_id"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TodoMutations:
    """Mutation layer bound to one surface's cache."""

    def __init__(self, cache: TodoQueryCache, rpc: TodoRpcClient, bus: SyncBus | None = None) -> None:
        self._cache = cache
        self._rpc = rpc
        self._bus = bus

    @asynccontextmanager
    async def _mutation(self, operation: str, event: SyncEvent) -> AsyncIterator[CacheSnapshot]:
        snapshot = self._cache.snapshot()
        self._cache.begin_mutation()
        try:
            yield snapshot
        finally:
            self._cache.end_mutation()
            await self._settle(operation, event)

    async def _settle(self, operation: str, event: SyncEvent) -> None:
        try:
            await self._cache.refetch()
        except Exception:
            logger.warning("Settle refetch failed", exc_info=True, extra={"operation": operation})
        if self._bus is None:
            return
        try:
            await self._bus.publish(event)
        except Exception:
            logger.warning("Settle broadcast failed", exc_info=True, extra={"operation": operation})

    def _rollback(self, snapshot: CacheSnapshot, operation: str, exc: Exception) -> None:
        self._cache.restore(snapshot)
        logger.info(
            "Rolled back optimistic change",
            extra={"operation": operation, "error": type(exc).__name__},
        )

    def _forget(self, task_id: TaskId, operation: str) -> None:
        if isinstance(task_id, PersistedId):
            self._cache.remove(task_id)
            logger.info(
                "Dropped task that no longer exists on the server",
                extra={"operation": operation, "task_id": task_id.server_id},
            )

    async def create(
        self,
        text: str,
        *,
        notes: str | None = None,
        category_id: int | None = None,
    ) -> Todo:
        now = _utcnow()
        placeholder = Todo(
            id=new_pending_id(),
            text=text,
            notes=notes,
            category_id=category_id,
            completed=False,
            order=0,
            created_at=now,
            updated_at=now,
        )
        async with self._mutation("create", SyncEvent.TODO_CREATED):
            self._cache.prepend(placeholder)
            try:
                created = await self._rpc.create_todo(text, notes=notes, category_id=category_id)
            except Exception as exc:
                self._cache.remove(placeholder.id)
                logger.info("Removed placeholder after failed create", extra={"error": type(exc).__name__})
                raise
            self._cache.put(created, replacing=placeholder.id)
            return created

    async def update(self, task_id: TaskId, patch: Mapping[str, Any]) -> Todo | None:
        """Patch a task. ``None`` means the server had nothing to change."""
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported task fields: {', '.join(sorted(unknown))}")

        async with self._mutation("update", SyncEvent.TODO_UPDATED) as snapshot:
            existing = self._cache.find(task_id)
            if existing is not None:
                self._cache.put(existing.model_copy(update={**patch, "updated_at": _utcnow()}))
            try:
                result = await self._rpc.update_todo(task_id, patch)
            except NotFoundRpcError:
                self._forget(task_id, "update")
                return None
            except Exception as exc:
                self._rollback(snapshot, "update", exc)
                raise
            if result is not None:
                self._cache.put(result)
            return result

    async def toggle(self, task_id: TaskId) -> Todo | None:
        async with self._mutation("toggle", SyncEvent.TODO_UPDATED) as snapshot:
            existing = self._cache.find(task_id)
            if existing is not None:
                self._cache.put(
                    existing.model_copy(update={"completed": not existing.completed, "updated_at": _utcnow()})
                )
            try:
                result = await self._rpc.toggle_todo(task_id)
            except NotFoundRpcError:
                self._forget(task_id, "toggle")
                return None
            except Exception as exc:
                self._rollback(snapshot, "toggle", exc)
                raise
            if result is not None:
                self._cache.put(result)
            return result

    async def delete(self, task_id: TaskId) -> None:
        async with self._mutation("delete", SyncEvent.TODO_DELETED) as snapshot:
            self._cache.remove(task_id)
            try:
                await self._rpc.delete_todo(task_id)
            except NotFoundRpcError:
                # Someone else deleted it first; the local removal already matches.
                logger.debug("Delete raced with another surface", extra={"task_id": task_id.to_wire()})
            except Exception as exc:
                self._rollback(snapshot, "delete", exc)
                raise

    async def clear_completed(self) -> int:
        """Delete every completed task and return how many the server removed."""
        async with self._mutation("clear_completed", SyncEvent.TODO_DELETED) as snapshot:
            self._cache.clear_completed()
            try:
                return await self._rpc.clear_completed()
            except Exception as exc:
                self._rollback(snapshot, "clear_completed", exc)
                raise

    async def reorder(self, active_id: TaskId, over_id: TaskId) -> ReorderPlan | None:
        """Move ``active_id`` to ``over_id``'s slot among the pending tasks."""
        plan = plan_reorder(self._cache.pending, active_id, over_id)
        if plan is None or plan.is_noop:
            return plan

        async with self._mutation("reorder", SyncEvent.TODO_UPDATED) as snapshot:
            self._cache.replace_lists(pending=plan.ordered)
            if plan.batch:
                try:
                    await self._rpc.reorder_todos(plan.batch)
                except NotFoundRpcError:
                    # The server rejected the whole batch; the settle refetch
                    # brings back its ordering.
                    logger.info("Reorder batch referenced a missing task")
                except Exception as exc:
                    self._rollback(snapshot, "reorder", exc)
                    raise
        return plan


__all__ = ["PATCHABLE_FIELDS", "TodoMutations"]
