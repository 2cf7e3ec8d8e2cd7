from __future__ import annotations

import pytest

from todosync.sync import BroadcastHub, IpcRelay

pytestmark = pytest.mark.asyncio


async def test_creation_reaches_the_other_window(make_surface) -> None:
    main = await make_surface("main")
    floating = await make_surface("floating")

    created = await main.mutations.create("shared errand")
    await floating.settled()

    assert [todo.id for todo in floating.pending] == [created.id]


async def test_delete_in_floating_window_updates_main(make_surface) -> None:
    main = await make_surface("main")
    floating = await make_surface("floating")
    created = await main.mutations.create("from main")
    await floating.settled()

    await floating.mutations.delete(created.id)
    await main.settled()

    assert main.pending == []
    assert floating.pending == []


async def test_toggle_and_reorder_converge(make_surface) -> None:
    main = await make_surface("main")
    floating = await make_surface("floating")
    a = await main.mutations.create("a")
    b = await main.mutations.create("b")
    c = await main.mutations.create("c")
    await floating.settled()

    await floating.mutations.toggle(b.id)
    await main.settled()
    await main.mutations.reorder(a.id, c.id)
    await floating.settled()

    assert [todo.id for todo in main.pending] == [a.id, c.id]
    assert [todo.id for todo in floating.pending] == [a.id, c.id]
    assert [todo.id for todo in main.completed] == [b.id]


async def test_signals_never_leak_other_owners_tasks(make_surface, issue_token) -> None:
    alice = await make_surface("alice", credential=issue_token("alice"))
    bob = await make_surface("bob", credential=issue_token("bob"))

    await alice.mutations.create("alice only")
    await bob.settled()

    assert bob.pending == []
    assert len(alice.pending) == 1


async def test_ipc_relay_alone_keeps_windows_in_sync(make_surface) -> None:
    relay = IpcRelay()
    # Separate hubs: the windows share no broadcast channel.
    main = await make_surface("main", host=relay.connect("main"), channel_hub=BroadcastHub())
    floating = await make_surface("floating", host=relay.connect("floating"), channel_hub=BroadcastHub())

    created = await floating.mutations.create("via ipc")
    await main.settled()

    assert [todo.id for todo in main.pending] == [created.id]


async def test_closed_surface_stops_listening(make_surface, hub: BroadcastHub, settings) -> None:
    main = await make_surface("main")
    floating = await make_surface("floating")
    assert hub.members(settings.sync_channel_name) == 2

    await floating.close()
    await main.mutations.create("after close")

    assert hub.members(settings.sync_channel_name) == 1
    assert floating.pending == []
