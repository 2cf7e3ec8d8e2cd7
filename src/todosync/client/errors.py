"""Errors raised by the RPC client.

Callers branch on the class, never on messages:

* ``UnauthorizedRpcError``: prompt for sign-in, do not retry.
* ``NotFoundRpcError``: the row vanished under us; usually a benign race.
* ``ConflictRpcError``: show inline (duplicate category names).
* ``TransportRpcError``: network, timeout or server failure; safe to retry.
"""

from __future__ import annotations

from typing import Any


class RpcError(Exception):
    """Base class for failed RPC calls."""

    retryable = False

    def __init__(
        self,
        message: str,
        *,
        code: str = "rpc_error",
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details


class UnauthorizedRpcError(RpcError):
    pass


class NotFoundRpcError(RpcError):
    pass


class ConflictRpcError(RpcError):
    pass


class ValidationRpcError(RpcError):
    """The server rejected the payload shape."""


class TransportRpcError(RpcError):
    """The call never produced an authoritative answer."""

    retryable = True


__all__ = [
    "ConflictRpcError",
    "NotFoundRpcError",
    "RpcError",
    "TransportRpcError",
    "UnauthorizedRpcError",
    "ValidationRpcError",
]
