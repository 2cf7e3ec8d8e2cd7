from __future__ import annotations

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

TODO = "/api/rpc/todo"


async def _create_many(client: AsyncClient, headers: dict[str, str], *texts: str) -> dict[str, int]:
    ids: dict[str, int] = {}
    for text in texts:
        response = await client.post(f"{TODO}/create", json={"text": text}, headers=headers)
        ids[text] = response.json()["id"]
    return ids


async def _pending(client: AsyncClient, headers: dict[str, str]) -> list[dict]:
    response = await client.post(f"{TODO}/list", json={"completed": False, "limit": 100}, headers=headers)
    return response.json()["todos"]


async def test_reorder_persists_new_positions(client: AsyncClient, auth_headers) -> None:
    headers = auth_headers("alice")
    ids = await _create_many(client, headers, "a", "b", "c")
    assert [todo["id"] for todo in await _pending(client, headers)] == [ids["c"], ids["b"], ids["a"]]

    response = await client.post(
        f"{TODO}/reorder",
        json={
            "items": [
                {"id": ids["a"], "order": 0},
                {"id": ids["c"], "order": 1},
                {"id": ids["b"], "order": 2},
            ]
        },
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    pending = await _pending(client, headers)
    assert [todo["id"] for todo in pending] == [ids["a"], ids["c"], ids["b"]]
    assert [todo["order"] for todo in pending] == [0, 1, 2]


async def test_reorder_batch_with_foreign_id_changes_nothing(client: AsyncClient, auth_headers) -> None:
    alice = auth_headers("alice")
    bob = auth_headers("bob")
    ids = await _create_many(client, alice, "a", "b")
    foreign = (await _create_many(client, bob, "theirs"))["theirs"]

    response = await client.post(
        f"{TODO}/reorder",
        json={
            "items": [
                {"id": ids["a"], "order": 5},
                {"id": foreign, "order": 6},
                {"id": ids["b"], "order": 7},
            ]
        },
        headers=alice,
    )

    assert response.status_code == 404
    payload = response.json()
    assert payload["code"] == "not_found"
    assert payload["details"]["ids"] == [foreign]
    assert [todo["order"] for todo in await _pending(client, alice)] == [0, 0]
    assert [todo["order"] for todo in await _pending(client, bob)] == [0]


async def test_reorder_skips_placeholder_ids(client: AsyncClient, auth_headers) -> None:
    headers = auth_headers("alice")
    ids = await _create_many(client, headers, "a")

    response = await client.post(
        f"{TODO}/reorder",
        json={"items": [{"id": -42, "order": 0}, {"id": ids["a"], "order": 3}]},
        headers=headers,
    )

    assert response.status_code == 200
    assert (await _pending(client, headers))[0]["order"] == 3


async def test_empty_reorder_batch_succeeds(client: AsyncClient, auth_headers) -> None:
    response = await client.post(f"{TODO}/reorder", json={"items": []}, headers=auth_headers("alice"))

    assert response.status_code == 200
    assert response.json() == {"success": True}


@pytest.mark.parametrize(
    "items",
    [
        [{"id": 1, "order": 0}, {"id": 1, "order": 1}],
        [{"id": 1, "order": -1}],
    ],
    ids=["duplicate-ids", "negative-order"],
)
async def test_malformed_reorder_batch_is_rejected(client: AsyncClient, auth_headers, items) -> None:
    response = await client.post(f"{TODO}/reorder", json={"items": items}, headers=auth_headers("alice"))

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"
