from __future__ import annotations

import httpx
import pytest
from httpx import ASGITransport

from todosync.client import CacheSnapshot, PersistedId, TodoSurface, TransportRpcError, ValidationRpcError

pytestmark = pytest.mark.asyncio


async def test_create_shows_placeholder_then_server_row(make_surface) -> None:
    surface = await make_surface()
    seen: list[CacheSnapshot] = []
    surface.cache.subscribe(seen.append)

    created = await surface.mutations.create("Buy milk", notes="two litres")

    assert seen[0].pending[0].is_placeholder
    assert seen[0].pending[0].text == "Buy milk"
    assert isinstance(created.id, PersistedId)
    assert created.notes == "two litres"
    assert [todo.id for todo in surface.pending] == [created.id]
    assert not any(todo.is_placeholder for todo in surface.pending)


async def test_failed_create_removes_placeholder(make_surface) -> None:
    surface = await make_surface()

    with pytest.raises(ValidationRpcError):
        await surface.mutations.create("")

    assert surface.pending == []


async def test_update_applies_patch(make_surface) -> None:
    surface = await make_surface()
    created = await surface.mutations.create("draft")

    updated = await surface.mutations.update(created.id, {"text": "final", "notes": "reviewed"})

    assert updated is not None
    assert updated.text == "final"
    assert surface.cache.find(created.id).notes == "reviewed"


async def test_update_rejects_unknown_fields(make_surface) -> None:
    surface = await make_surface()
    created = await surface.mutations.create("draft")

    with pytest.raises(ValueError):
        await surface.mutations.update(created.id, {"owner_id": 99})

    assert surface.cache.find(created.id).text == "draft"


async def test_update_of_vanished_task_drops_it_locally(make_surface) -> None:
    surface = await make_surface()
    created = await surface.mutations.create("ephemeral")
    await surface.rpc.delete_todo(created.id)

    result = await surface.mutations.update(created.id, {"text": "too late"})

    assert result is None
    assert surface.cache.find(created.id) is None


async def test_toggle_moves_task_between_lists(make_surface) -> None:
    surface = await make_surface()
    created = await surface.mutations.create("finish report")

    toggled = await surface.mutations.toggle(created.id)

    assert toggled is not None and toggled.completed
    assert surface.pending == []
    assert [todo.id for todo in surface.completed] == [created.id]


async def test_toggle_rolls_back_when_server_is_unreachable(make_surface, flaky_transport) -> None:
    surface = await make_surface(transport=flaky_transport("/toggle"))
    created = await surface.mutations.create("stays pending")

    with pytest.raises(TransportRpcError):
        await surface.mutations.toggle(created.id)

    assert [todo.id for todo in surface.pending] == [created.id]
    assert surface.pending[0].completed is False
    assert surface.completed == []


async def test_delete_is_idempotent_for_the_caller(make_surface) -> None:
    surface = await make_surface()
    created = await surface.mutations.create("remove me")

    await surface.mutations.delete(created.id)
    await surface.mutations.delete(created.id)

    assert surface.pending == []


async def test_delete_rolls_back_when_server_is_unreachable(make_surface, flaky_transport) -> None:
    surface = await make_surface(transport=flaky_transport("/delete"))
    created = await surface.mutations.create("precious")

    with pytest.raises(TransportRpcError):
        await surface.mutations.delete(created.id)

    assert [todo.id for todo in surface.pending] == [created.id]


async def test_clear_completed_returns_deleted_count(make_surface) -> None:
    surface = await make_surface()
    keep = await surface.mutations.create("keep")
    done = await surface.mutations.create("done")
    await surface.mutations.toggle(done.id)

    deleted = await surface.mutations.clear_completed()

    assert deleted == 1
    assert surface.completed == []
    assert [todo.id for todo in surface.pending] == [keep.id]


async def test_reorder_persists_drag_result(make_surface) -> None:
    surface = await make_surface()
    a = await surface.mutations.create("a")
    b = await surface.mutations.create("b")
    c = await surface.mutations.create("c")
    assert [todo.id for todo in surface.pending] == [c.id, b.id, a.id]

    plan = await surface.mutations.reorder(a.id, c.id)

    assert plan is not None
    assert [todo.id for todo in surface.pending] == [a.id, c.id, b.id]
    server_page = await surface.rpc.list_todos(completed=False, limit=100)
    assert [todo.id for todo in server_page.todos] == [a.id, c.id, b.id]


async def test_reorder_onto_itself_sends_nothing(make_surface) -> None:
    surface = await make_surface()
    a = await surface.mutations.create("a")
    generation = surface.cache.generation

    plan = await surface.mutations.reorder(a.id, a.id)

    assert plan is not None and plan.is_noop
    assert surface.cache.generation == generation


async def test_reorder_with_vanished_task_settles_to_server_state(make_surface) -> None:
    surface = await make_surface()
    a = await surface.mutations.create("a")
    b = await surface.mutations.create("b")
    await surface.rpc.delete_todo(b.id)

    plan = await surface.mutations.reorder(a.id, b.id)

    assert plan is not None
    assert [todo.id for todo in surface.pending] == [a.id]


class _SlowToggleTransport(httpx.AsyncBaseTransport):
    """Serve through the app, but let toggles exceed the client timeout."""

    def __init__(self, inner: httpx.AsyncBaseTransport) -> None:
        self.inner = inner
        self.timeouts: list[dict] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.timeouts.append(request.extensions["timeout"])
        if request.url.path.endswith("/toggle"):
            raise httpx.ReadTimeout("server too slow", request=request)
        return await self.inner.handle_async_request(request)


async def test_surface_from_settings_times_out_and_rolls_back(app, settings, hub) -> None:
    configured = settings.model_copy(update={"rpc_timeout_seconds": 2.5})
    transport = _SlowToggleTransport(ASGITransport(app=app))
    surface = TodoSurface.from_settings(configured, name="configured", transport=transport, hub=hub)
    await surface.start()
    try:
        created = await surface.mutations.create("wait for it")

        with pytest.raises(TransportRpcError) as caught:
            await surface.mutations.toggle(created.id)

        assert caught.value.code == "timeout"
        assert caught.value.retryable is True
        assert [todo.id for todo in surface.pending] == [created.id]
        assert surface.completed == []
        assert all(timeout["read"] == 2.5 for timeout in transport.timeouts)
    finally:
        await surface.close()
