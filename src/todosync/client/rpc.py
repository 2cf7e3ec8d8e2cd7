"""Typed RPC client for the todosync server.

Every procedure is a JSON ``POST`` to ``{api_prefix}/rpc/<namespace>/<op>``.
The client attaches the identity credential to each call and turns failed
responses into the ``RpcError`` family so callers never inspect status codes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import httpx
from pydantic.alias_generators import to_camel

from ..core.config import Settings
from .errors import (
    ConflictRpcError,
    NotFoundRpcError,
    RpcError,
    TransportRpcError,
    UnauthorizedRpcError,
    ValidationRpcError,
)
from .ids import PersistedId, TaskId
from .models import Category, CategoryListing, Todo, TodoPage

logger = logging.getLogger(__name__)

_STATUS_ERRORS: dict[int, type[RpcError]] = {
    401: UnauthorizedRpcError,
    404: NotFoundRpcError,
    409: ConflictRpcError,
    422: ValidationRpcError,
}


def _error_from_response(procedure: str, response: httpx.Response) -> RpcError:
    try:
        envelope = response.json()
    except ValueError:
        envelope = {}
    if not isinstance(envelope, dict):
        envelope = {}
    message = str(envelope.get("message") or f"{procedure} failed with HTTP {response.status_code}")
    code = str(envelope.get("code") or "rpc_error")

    if response.status_code >= 500:
        error_cls: type[RpcError] = TransportRpcError
    else:
        error_cls = _STATUS_ERRORS.get(response.status_code, RpcError)
    return error_cls(
        message,
        code=code,
        status_code=response.status_code,
        details=envelope.get("details"),
    )


def _camelize(patch: Mapping[str, Any]) -> dict[str, Any]:
    return {to_camel(key): value for key, value in patch.items()}


class TodoRpcClient:
    """Async client for the ``todo`` and ``category`` procedures."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        credential: str | None = None,
        api_prefix: str = "/api",
    ) -> None:
        self._http = http
        self._credential = credential
        self._prefix = api_prefix.rstrip("/")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        credential: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "TodoRpcClient":
        """Build a client with its own ``httpx.AsyncClient``."""
        http = httpx.AsyncClient(
            base_url=settings.rpc_base_url,
            timeout=httpx.Timeout(settings.rpc_timeout_seconds),
            transport=transport,
        )
        return cls(http, credential=credential, api_prefix=settings.api_prefix)

    @property
    def credential(self) -> str | None:
        return self._credential

    def set_credential(self, credential: str | None) -> None:
        self._credential = credential

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "TodoRpcClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def call(self, procedure: str, payload: Mapping[str, Any] | None = None) -> Any:
        """Invoke ``procedure`` (``"todo.list"``) and return the decoded JSON body."""
        path = f"{self._prefix}/rpc/{procedure.replace('.', '/')}"
        headers = {}
        if self._credential:
            headers["Authorization"] = f"Bearer {self._credential}"

        try:
            response = await self._http.post(path, json=dict(payload or {}), headers=headers)
        except httpx.TimeoutException as exc:
            raise TransportRpcError(f"{procedure} timed out", code="timeout") from exc
        except httpx.TransportError as exc:
            raise TransportRpcError(f"{procedure} could not reach the server", code="transport_error") from exc

        if response.is_error:
            error = _error_from_response(procedure, response)
            logger.debug(
                "RPC call failed",
                extra={"procedure": procedure, "status_code": response.status_code, "code": error.code},
            )
            raise error
        return response.json()

    async def list_todos(
        self,
        *,
        limit: int = 10,
        offset: int = 0,
        completed: bool | None = None,
        category_id: int | None = None,
    ) -> TodoPage:
        payload: dict[str, Any] = {"limit": limit, "offset": offset}
        if completed is not None:
            payload["completed"] = completed
        if category_id is not None:
            payload["categoryId"] = category_id
        return TodoPage.model_validate(await self.call("todo.list", payload))

    async def create_todo(
        self,
        text: str,
        *,
        notes: str | None = None,
        category_id: int | None = None,
    ) -> Todo:
        payload: dict[str, Any] = {"text": text}
        if notes is not None:
            payload["notes"] = notes
        if category_id is not None:
            payload["categoryId"] = category_id
        return Todo.model_validate(await self.call("todo.create", payload))

    async def update_todo(self, task_id: TaskId, patch: Mapping[str, Any]) -> Todo | None:
        """Patch a task. ``patch`` uses snake_case field names."""
        body = await self.call("todo.update", {"id": task_id.to_wire(), "data": _camelize(patch)})
        return Todo.model_validate(body) if body is not None else None

    async def toggle_todo(self, task_id: TaskId) -> Todo | None:
        body = await self.call("todo.toggle", {"id": task_id.to_wire()})
        return Todo.model_validate(body) if body is not None else None

    async def delete_todo(self, task_id: TaskId) -> bool:
        body = await self.call("todo.delete", {"id": task_id.to_wire()})
        return bool(body.get("success", False))

    async def clear_completed(self) -> int:
        body = await self.call("todo.clearCompleted")
        return int(body["deletedCount"])

    async def reorder_todos(self, items: Iterable[tuple[PersistedId, int]]) -> bool:
        batch = [{"id": task_id.to_wire(), "order": order} for task_id, order in items]
        body = await self.call("todo.reorder", {"items": batch})
        return bool(body.get("success", False))

    async def list_categories(self) -> CategoryListing:
        return CategoryListing.model_validate(await self.call("category.list"))

    async def create_category(self, name: str, *, color: str | None = None) -> Category:
        payload: dict[str, Any] = {"name": name}
        if color is not None:
            payload["color"] = color
        return Category.model_validate(await self.call("category.create", payload))

    async def update_category(self, category_id: int, patch: Mapping[str, Any]) -> Category:
        body = await self.call("category.update", {"id": category_id, "data": _camelize(patch)})
        return Category.model_validate(body)

    async def delete_category(self, category_id: int) -> bool:
        body = await self.call("category.delete", {"id": category_id})
        return bool(body.get("success", False))


__all__ = ["TodoRpcClient"]
