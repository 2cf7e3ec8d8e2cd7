"""Local query cache for one surface.

The cache holds two lists, mirroring the two queries a surface renders: the
pending tasks (one large page) and the completed tasks (paged, newest first).

Two counters keep refetches from clobbering optimistic state:

* ``generation`` moves on every local change. A refetch that started under
  an older generation throws its result away and fetches again.
* ``active mutations`` counts mutations whose RPC has not returned. While any
  is in flight, refetch results are dropped outright; the mutation's own
  settle step refetches once it is done.

Refetch requests arriving while one is running collapse into a single
follow-up round.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from .ids import TaskId
from .models import Todo
from .reorder import sort_pending
from .rpc import TodoRpcClient

logger = logging.getLogger(__name__)

CacheListener = Callable[["CacheSnapshot"], None]


@dataclass(frozen=True, slots=True)
class CacheSnapshot:
    pending: tuple[Todo, ...] = ()
    completed: tuple[Todo, ...] = ()
    pending_total: int = 0
    completed_total: int = 0
    completed_has_more: bool = False

    def find(self, task_id: TaskId) -> Todo | None:
        for todo in (*self.pending, *self.completed):
            if todo.id == task_id:
                return todo
        return None


@dataclass(slots=True)
class _RefetchState:
    task: asyncio.Task[None] | None = None
    requested: bool = False
    background: set[asyncio.Task[None]] = field(default_factory=set)


class TodoQueryCache:
    """Optimistically mutable view of the owner's tasks."""

    def __init__(
        self,
        rpc: TodoRpcClient,
        *,
        pending_limit: int = 100,
        completed_limit: int = 10,
    ) -> None:
        self._rpc = rpc
        self._pending_limit = pending_limit
        self._completed_limit = completed_limit
        self._state = CacheSnapshot()
        self._generation = 0
        self._active_mutations = 0
        self._loaded = False
        self._refetch = _RefetchState()
        self._listeners: list[CacheListener] = []

    # -- reading ---------------------------------------------------------

    @property
    def pending(self) -> list[Todo]:
        return list(self._state.pending)

    @property
    def completed(self) -> list[Todo]:
        return list(self._state.completed)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def is_fetching(self) -> bool:
        task = self._refetch.task
        return task is not None and not task.done()

    def snapshot(self) -> CacheSnapshot:
        return self._state

    def find(self, task_id: TaskId) -> Todo | None:
        return self._state.find(task_id)

    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -- optimistic writes -----------------------------------------------

    def _commit(self, state: CacheSnapshot) -> None:
        self._state = state
        self._generation += 1
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Cache listener raised an exception")

    def restore(self, snapshot: CacheSnapshot) -> None:
        self._commit(snapshot)

    def replace_lists(
        self,
        *,
        pending: Iterable[Todo] | None = None,
        completed: Iterable[Todo] | None = None,
    ) -> None:
        state = self._state
        new_pending = tuple(pending) if pending is not None else state.pending
        new_completed = tuple(completed) if completed is not None else state.completed
        self._commit(
            CacheSnapshot(
                pending=new_pending,
                completed=new_completed,
                pending_total=max(0, state.pending_total + len(new_pending) - len(state.pending)),
                completed_total=max(0, state.completed_total + len(new_completed) - len(state.completed)),
                completed_has_more=state.completed_has_more,
            )
        )

    def prepend(self, todo: Todo) -> None:
        """Insert ``todo`` at the head of the list matching its completion."""
        pending = [item for item in self._state.pending if item.id != todo.id]
        completed = [item for item in self._state.completed if item.id != todo.id]
        if todo.completed:
            completed.insert(0, todo)
        else:
            pending.insert(0, todo)
        self.replace_lists(pending=pending, completed=completed)

    def put(self, todo: Todo, *, replacing: TaskId | None = None) -> None:
        """Write ``todo`` in place, moving it to the head of the other list if
        its completion changed.

        ``replacing`` names a different entry (a placeholder) that ``todo``
        supersedes, so the two are never listed together.
        """
        ids = {todo.id} if replacing is None else {todo.id, replacing}
        state = self._state
        home, away = (state.completed, state.pending) if todo.completed else (state.pending, state.completed)
        slot = next((index for index, item in enumerate(home) if item.id in ids), 0)
        home_list = [item for item in home if item.id not in ids]
        away_list = [item for item in away if item.id not in ids]
        home_list.insert(slot, todo)
        if todo.completed:
            self.replace_lists(pending=away_list, completed=home_list)
        else:
            self.replace_lists(pending=home_list, completed=away_list)

    def clear_completed(self) -> None:
        state = self._state
        self._commit(
            CacheSnapshot(
                pending=state.pending,
                pending_total=state.pending_total,
            )
        )

    def remove(self, task_id: TaskId) -> Todo | None:
        existing = self.find(task_id)
        if existing is None:
            return None
        self.replace_lists(
            pending=[item for item in self._state.pending if item.id != task_id],
            completed=[item for item in self._state.completed if item.id != task_id],
        )
        return existing

    # -- mutation bookkeeping --------------------------------------------

    def begin_mutation(self) -> None:
        self._active_mutations += 1
        self._generation += 1

    def end_mutation(self) -> None:
        self._active_mutations = max(0, self._active_mutations - 1)
        self._generation += 1

    # -- server reads ----------------------------------------------------

    async def _fetch(self) -> CacheSnapshot:
        pending_page = await self._rpc.list_todos(completed=False, limit=self._pending_limit)
        completed_page = await self._rpc.list_todos(completed=True, limit=self._completed_limit)
        return CacheSnapshot(
            pending=tuple(sort_pending(pending_page.todos)),
            completed=tuple(completed_page.todos),
            pending_total=pending_page.total,
            completed_total=completed_page.total,
            completed_has_more=completed_page.has_more,
        )

    async def _run_refetch(self) -> None:
        while True:
            self._refetch.requested = False
            generation = self._generation
            fresh = await self._fetch()
            if self._active_mutations:
                logger.debug("Dropped refetch result while a mutation is in flight")
                return
            if generation != self._generation:
                logger.debug("Discarded stale refetch result", extra={"generation": generation})
                continue
            self._commit(fresh)
            self._loaded = True
            if not self._refetch.requested:
                return

    async def refetch(self) -> None:
        """Load authoritative state, joining a refetch already in flight."""
        if self.is_fetching:
            self._refetch.requested = True
        else:
            self._refetch.task = asyncio.create_task(self._run_refetch())
        task = self._refetch.task
        assert task is not None
        await asyncio.shield(task)

    def invalidate(self) -> None:
        """Mark the cache stale and refetch in the background."""
        if self.is_fetching:
            self._refetch.requested = True
            return
        background = asyncio.create_task(self._background_refetch())
        self._refetch.background.add(background)
        background.add_done_callback(self._refetch.background.discard)

    async def _background_refetch(self) -> None:
        try:
            await self.refetch()
        except Exception:
            logger.warning("Background refetch failed", exc_info=True)

    async def wait_idle(self) -> None:
        """Wait for every scheduled refetch to finish (errors are not raised)."""
        while True:
            pending = [task for task in self._refetch.background if not task.done()]
            if self.is_fetching:
                pending.append(self._refetch.task)  # type: ignore[arg-type]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def load_more_completed(self) -> list[Todo]:
        """Append the next page of completed tasks and return it."""
        offset = len(self._state.completed)
        page = await self._rpc.list_todos(completed=True, limit=self._completed_limit, offset=offset)
        known = {todo.id for todo in self._state.completed}
        fresh = [todo for todo in page.todos if todo.id not in known]
        state = self._state
        self._commit(
            CacheSnapshot(
                pending=state.pending,
                completed=(*state.completed, *fresh),
                pending_total=state.pending_total,
                completed_total=page.total,
                completed_has_more=page.has_more,
            )
        )
        return fresh


__all__ = ["CacheSnapshot", "TodoQueryCache"]
