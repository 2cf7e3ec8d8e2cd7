from __future__ import annotations

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

CATEGORY = "/api/rpc/category"
TODO = "/api/rpc/todo"


async def _create_category(client: AsyncClient, headers: dict[str, str], name: str, **extra) -> dict:
    response = await client.post(f"{CATEGORY}/create", json={"name": name, **extra}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


async def test_create_category_defaults_and_name_trimming(client: AsyncClient, auth_headers) -> None:
    headers = auth_headers("alice")

    work = await _create_category(client, headers, "Work")
    home = await _create_category(client, headers, "  Home  ", color="green")

    assert work["color"] == "blue"
    assert home["name"] == "Home"
    assert home["color"] == "green"


async def test_duplicate_category_name_conflicts(client: AsyncClient, auth_headers) -> None:
    headers = auth_headers("alice")
    await _create_category(client, headers, "Work")

    response = await client.post(f"{CATEGORY}/create", json={"name": "Work"}, headers=headers)

    assert response.status_code == 409
    payload = response.json()
    assert payload["code"] == "conflict"
    assert payload["message"] == 'Category "Work" already exists.'

    # Names are unique per owner, not globally.
    await _create_category(client, auth_headers("bob"), "Work")


async def test_unknown_color_is_rejected(client: AsyncClient, auth_headers) -> None:
    response = await client.post(
        f"{CATEGORY}/create",
        json={"name": "Odd", "color": "chartreuse"},
        headers=auth_headers("alice"),
    )

    assert response.status_code == 422


async def test_list_reports_pending_counts(client: AsyncClient, auth_headers) -> None:
    headers = auth_headers("alice")
    work = await _create_category(client, headers, "Work")
    await _create_category(client, headers, "Empty")
    for text in ("w1", "w2", "w3"):
        await client.post(f"{TODO}/create", json={"text": text, "categoryId": work["id"]}, headers=headers)
    done = await client.post(f"{TODO}/create", json={"text": "w done", "categoryId": work["id"]}, headers=headers)
    await client.post(f"{TODO}/toggle", json={"id": done.json()["id"]}, headers=headers)
    await client.post(f"{TODO}/create", json={"text": "loose"}, headers=headers)

    response = await client.post(f"{CATEGORY}/list", headers=headers)

    assert response.status_code == 200
    payload = response.json()
    counts = {category["name"]: category["pendingCount"] for category in payload["categories"]}
    assert counts == {"Work": 3, "Empty": 0}
    assert payload["uncategorizedCount"] == 1


async def test_update_category(client: AsyncClient, auth_headers) -> None:
    headers = auth_headers("alice")
    work = await _create_category(client, headers, "Work")
    await _create_category(client, headers, "Home")

    renamed = await client.post(
        f"{CATEGORY}/update",
        json={"id": work["id"], "data": {"name": "Office", "color": "rose"}},
        headers=headers,
    )
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Office"
    assert renamed.json()["color"] == "rose"

    clash = await client.post(
        f"{CATEGORY}/update",
        json={"id": work["id"], "data": {"name": "Home"}},
        headers=headers,
    )
    assert clash.status_code == 409

    empty = await client.post(f"{CATEGORY}/update", json={"id": work["id"], "data": {}}, headers=headers)
    assert empty.status_code == 422


async def test_delete_category_keeps_its_tasks(client: AsyncClient, auth_headers) -> None:
    headers = auth_headers("alice")
    work = await _create_category(client, headers, "Work")
    task = await client.post(f"{TODO}/create", json={"text": "filed", "categoryId": work["id"]}, headers=headers)

    response = await client.post(f"{CATEGORY}/delete", json={"id": work["id"]}, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"success": True}
    todos = (await client.post(f"{TODO}/list", headers=headers)).json()["todos"]
    assert [todo["id"] for todo in todos] == [task.json()["id"]]
    assert todos[0]["categoryId"] is None
    listing = (await client.post(f"{CATEGORY}/list", headers=headers)).json()
    assert listing["categories"] == []
    assert listing["uncategorizedCount"] == 1

    again = await client.post(f"{CATEGORY}/delete", json={"id": work["id"]}, headers=headers)
    assert again.status_code == 404


async def test_categories_of_other_owners_are_not_found(client: AsyncClient, auth_headers) -> None:
    work = await _create_category(client, auth_headers("alice"), "Work")
    bob = auth_headers("bob")

    update = await client.post(f"{CATEGORY}/update", json={"id": work["id"], "data": {"name": "Mine"}}, headers=bob)
    delete = await client.post(f"{CATEGORY}/delete", json={"id": work["id"]}, headers=bob)
    listing = await client.post(f"{CATEGORY}/list", headers=bob)

    assert update.status_code == 404
    assert delete.status_code == 404
    assert listing.json()["categories"] == []
