"""Client core: RPC access, optimistic cache and mutations for one surface."""

from .cache import CacheSnapshot, TodoQueryCache
from .errors import (
    ConflictRpcError,
    NotFoundRpcError,
    RpcError,
    TransportRpcError,
    UnauthorizedRpcError,
    ValidationRpcError,
)
from .ids import PendingId, PersistedId, TaskId, new_pending_id, task_id_from_wire
from .models import Category, CategoryListing, Todo, TodoPage
from .mutations import PATCHABLE_FIELDS, TodoMutations
from .reorder import ReorderPlan, array_move, plan_reorder, sort_pending
from .rpc import TodoRpcClient
from .surface import TodoSurface

__all__ = [
    "CacheSnapshot",
    "Category",
    "CategoryListing",
    "ConflictRpcError",
    "NotFoundRpcError",
    "PATCHABLE_FIELDS",
    "PendingId",
    "PersistedId",
    "ReorderPlan",
    "RpcError",
    "TaskId",
    "Todo",
    "TodoMutations",
    "TodoPage",
    "TodoQueryCache",
    "TodoRpcClient",
    "TodoSurface",
    "TransportRpcError",
    "UnauthorizedRpcError",
    "ValidationRpcError",
    "array_move",
    "new_pending_id",
    "plan_reorder",
    "sort_pending",
    "task_id_from_wire",
]
