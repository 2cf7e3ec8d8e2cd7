from __future__ import annotations

import json

import httpx
import pytest

from todosync.client import (
    ConflictRpcError,
    NotFoundRpcError,
    PendingId,
    PersistedId,
    RpcError,
    TodoRpcClient,
    TransportRpcError,
    UnauthorizedRpcError,
)

pytestmark = pytest.mark.asyncio

TODO_JSON = {
    "id": 4,
    "text": "Water plants",
    "completed": False,
    "notes": None,
    "order": 0,
    "categoryId": None,
    "ownerId": 1,
    "createdAt": "2024-05-01T09:00:00Z",
    "updatedAt": "2024-05-01T09:00:00Z",
}


def _client(handler, credential: str | None = "secret-token") -> TodoRpcClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://rpc.test")
    return TodoRpcClient(http, credential=credential, api_prefix="/api/")


async def test_call_posts_json_with_bearer_credential() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=TODO_JSON)

    async with _client(handler) as rpc:
        todo = await rpc.update_todo(PersistedId(4), {"text": "Water plants", "category_id": None})

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/rpc/todo/update"
    assert request.headers["Authorization"] == "Bearer secret-token"
    assert json.loads(request.content) == {"id": 4, "data": {"text": "Water plants", "categoryId": None}}
    assert todo is not None and todo.id == PersistedId(4)


async def test_placeholder_ids_travel_as_negative_numbers() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, content=b"null", headers={"Content-Type": "application/json"})

    async with _client(handler, credential=None) as rpc:
        assert await rpc.toggle_todo(PendingId(8)) is None

    assert bodies == [{"id": -8}]


@pytest.mark.parametrize(
    ("status_code", "error_cls"),
    [
        (401, UnauthorizedRpcError),
        (404, NotFoundRpcError),
        (409, ConflictRpcError),
        (400, RpcError),
        (503, TransportRpcError),
    ],
)
async def test_error_envelopes_map_to_error_classes(status_code: int, error_cls: type[RpcError]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code,
            json={"code": "example", "message": "Example failure", "details": {"request_id": "r-1"}},
        )

    async with _client(handler) as rpc:
        with pytest.raises(error_cls) as caught:
            await rpc.delete_todo(PersistedId(1))

    assert type(caught.value) is error_cls
    assert caught.value.code == "example"
    assert caught.value.status_code == status_code
    assert caught.value.details == {"request_id": "r-1"}
    assert caught.value.retryable is (status_code >= 500)


async def test_non_json_error_body_still_maps() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad gateway")

    async with _client(handler) as rpc:
        with pytest.raises(TransportRpcError) as caught:
            await rpc.list_todos()

    assert caught.value.code == "rpc_error"
    assert "todo.list" in caught.value.message


async def test_network_failures_are_retryable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("too slow", request=request)

    async with _client(handler) as rpc:
        with pytest.raises(TransportRpcError) as caught:
            await rpc.clear_completed()

    assert caught.value.code == "timeout"
    assert caught.value.retryable is True


async def test_category_listing_is_parsed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "categories": [
                    {
                        "id": 2,
                        "name": "Work",
                        "color": "blue",
                        "ownerId": 1,
                        "pendingCount": 3,
                        "createdAt": "2024-05-01T09:00:00Z",
                        "updatedAt": "2024-05-01T09:00:00Z",
                    }
                ],
                "uncategorizedCount": 1,
            },
        )

    async with _client(handler) as rpc:
        listing = await rpc.list_categories()

    assert listing.uncategorized_count == 1
    assert listing.categories[0].pending_count == 3


async def test_credential_can_be_swapped_after_sign_in() -> None:
    headers: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        headers.append(request.headers.get("Authorization"))
        return httpx.Response(200, json={"deletedCount": 0})

    async with _client(handler, credential=None) as rpc:
        await rpc.clear_completed()
        rpc.set_credential("fresh-token")
        await rpc.clear_completed()

    assert rpc.credential == "fresh-token"
    assert headers == [None, "Bearer fresh-token"]
