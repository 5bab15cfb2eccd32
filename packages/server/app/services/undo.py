"""
Undo of todo moves.

When a todo changes column, the move endpoint records where it came from. For
a short window (``undo_ttl_seconds``) the owner can send it back. Stores are
created by ``create_app()`` and live on ``app.state``; there is no process
global, so tests inject their own store and clock.

Two backends:
- ``MemoryUndoStore``: bounded TTL map for a single server process
- ``RedisUndoStore``: shared between server instances, expiry by Redis
"""

from __future__ import annotations

import json
import time
import uuid
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional

import structlog

from planner_shared.schemas.common import TodoStatus

log = structlog.get_logger()


@dataclass
class UndoAction:
    owner_id: uuid.UUID
    todo_id: uuid.UUID
    status: TodoStatus
    custom_status_id: Optional[uuid.UUID]
    position: int
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_json(self) -> str:
        return json.dumps(
            {
                "id": self.id,
                "owner_id": str(self.owner_id),
                "todo_id": str(self.todo_id),
                "status": self.status.value,
                "custom_status_id": str(self.custom_status_id) if self.custom_status_id else None,
                "position": self.position,
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "UndoAction":
        data = json.loads(raw)
        return cls(
            id=data["id"],
            owner_id=uuid.UUID(data["owner_id"]),
            todo_id=uuid.UUID(data["todo_id"]),
            status=TodoStatus(data["status"]),
            custom_status_id=uuid.UUID(data["custom_status_id"]) if data["custom_status_id"] else None,
            position=data["position"],
        )


class UndoStore:
    """Pending undo actions, at most one per todo."""

    async def record(self, action: UndoAction) -> None:
        raise NotImplementedError

    async def pop(self, owner_id: uuid.UUID, action_id: str) -> Optional[UndoAction]:
        """Take the action if it exists, is unexpired and belongs to ``owner_id``."""
        raise NotImplementedError

    async def pop_latest(self, owner_id: uuid.UUID) -> Optional[UndoAction]:
        raise NotImplementedError


class MemoryUndoStore(UndoStore):
    """In-process store: insertion-ordered entries with one shared TTL.

    Because every entry lives for the same ``ttl_seconds``, insertion order is
    expiry order and a sweep only ever looks at the head. Beyond
    ``max_entries`` the oldest entries are evicted.
    """

    def __init__(
        self,
        ttl_seconds: float = 30,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, UndoAction]] = OrderedDict()
        self._by_todo: dict[uuid.UUID, str] = {}

    def __len__(self) -> int:
        self.sweep()
        return len(self._entries)

    def _remove(self, action_id: str) -> Optional[UndoAction]:
        entry = self._entries.pop(action_id, None)
        if entry is None:
            return None
        action = entry[1]
        if self._by_todo.get(action.todo_id) == action_id:
            del self._by_todo[action.todo_id]
        return action

    def sweep(self) -> int:
        """Drop expired entries; returns how many were dropped."""
        now = self._clock()
        dropped = 0
        while self._entries:
            action_id, (expires_at, _) = next(iter(self._entries.items()))
            if expires_at > now:
                break
            self._remove(action_id)
            dropped += 1
        return dropped

    async def record(self, action: UndoAction) -> None:
        self.sweep()
        previous = self._by_todo.get(action.todo_id)
        if previous is not None:
            self._remove(previous)

        self._entries[action.id] = (self._clock() + self.ttl_seconds, action)
        self._by_todo[action.todo_id] = action.id
        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            self._remove(oldest)

    async def pop(self, owner_id: uuid.UUID, action_id: str) -> Optional[UndoAction]:
        self.sweep()
        entry = self._entries.get(action_id)
        if entry is None or entry[1].owner_id != owner_id:
            return None
        return self._remove(action_id)

    async def pop_latest(self, owner_id: uuid.UUID) -> Optional[UndoAction]:
        self.sweep()
        for action_id in reversed(self._entries):
            if self._entries[action_id][1].owner_id == owner_id:
                return self._remove(action_id)
        return None


class RedisUndoStore(UndoStore):
    """Redis-backed store shared across server instances.

    Keys:
    - ``undo:action:{id}``: the serialized action (SETEX)
    - ``undo:todo:{todo_id}``: id of the todo's pending action
    - ``undo:owner:{owner_id}``: list of the owner's action ids, newest first
    """

    def __init__(self, redis, ttl_seconds: int = 30, max_per_owner: int = 50):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.max_per_owner = max_per_owner

    @staticmethod
    def _action_key(action_id: str) -> str:
        return f"undo:action:{action_id}"

    @staticmethod
    def _todo_key(todo_id: uuid.UUID) -> str:
        return f"undo:todo:{todo_id}"

    @staticmethod
    def _owner_key(owner_id: uuid.UUID) -> str:
        return f"undo:owner:{owner_id}"

    async def record(self, action: UndoAction) -> None:
        previous = await self.redis.get(self._todo_key(action.todo_id))
        if previous:
            await self.redis.delete(self._action_key(previous))
            await self.redis.lrem(self._owner_key(action.owner_id), 0, previous)

        owner_key = self._owner_key(action.owner_id)
        await self.redis.setex(self._action_key(action.id), self.ttl_seconds, action.to_json())
        await self.redis.setex(self._todo_key(action.todo_id), self.ttl_seconds, action.id)
        await self.redis.lpush(owner_key, action.id)
        await self.redis.ltrim(owner_key, 0, self.max_per_owner - 1)
        await self.redis.expire(owner_key, self.ttl_seconds)

    async def pop(self, owner_id: uuid.UUID, action_id: str) -> Optional[UndoAction]:
        raw = await self.redis.get(self._action_key(action_id))
        if not raw:
            return None
        action = UndoAction.from_json(raw)
        if action.owner_id != owner_id:
            return None

        await self.redis.delete(self._action_key(action_id), self._todo_key(action.todo_id))
        await self.redis.lrem(self._owner_key(owner_id), 0, action_id)
        return action

    async def pop_latest(self, owner_id: uuid.UUID) -> Optional[UndoAction]:
        for action_id in await self.redis.lrange(self._owner_key(owner_id), 0, -1):
            action = await self.pop(owner_id, action_id)
            if action is not None:
                return action
        return None
