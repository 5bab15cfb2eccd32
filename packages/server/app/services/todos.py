"""
Todo service layer: CRUD and board ordering for todos.

Handles:
- Scoped positions per (owner, status, custom status) over active todos
- Drag and drop moves within and across columns
- Bulk reorder of one column
- Ownership checks for referenced custom statuses and tasks
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFoundError, OwnershipError, ValidationError
from app.models.custom_status import CustomStatus
from app.models.task import Task
from app.models.todo import Todo
from app.services import positions
from app.services.archive_rules import as_aware
from planner_shared.schemas.common import ArchiveBucket, TodoStatus
from planner_shared.schemas.todos import TodoCreate, TodoReorder, TodoUpdate

log = structlog.get_logger()


@dataclass(frozen=True)
class TodoLocation:
    """Where a todo sat on the board: its column and position."""
    status: TodoStatus
    custom_status_id: Optional[uuid.UUID]
    position: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def todo_scope(
    owner_id: uuid.UUID, status: TodoStatus, custom_status_id: Optional[uuid.UUID]
) -> list[Any]:
    """Criteria selecting the active todos of one board column."""
    if custom_status_id is None:
        custom = Todo.custom_status_id.is_(None)
    else:
        custom = Todo.custom_status_id == custom_status_id
    return [
        Todo.owner_id == owner_id,
        Todo.status == status.value,
        custom,
        Todo.archived_at.is_(None),
    ]


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    """Due dates are stored in UTC; naive input is taken as UTC."""
    return as_aware(value).astimezone(timezone.utc) if value is not None else None


def location_of(todo: Todo) -> TodoLocation:
    return TodoLocation(TodoStatus(todo.status), todo.custom_status_id, todo.position)


async def get_todo_or_404(session: AsyncSession, todo_id: uuid.UUID, owner_id: uuid.UUID) -> Todo:
    todo = await session.get(Todo, todo_id)
    if not todo:
        raise NotFoundError("Todo not found")
    if todo.owner_id != owner_id:
        raise OwnershipError([todo_id])
    return todo


async def get_owned_todos(
    session: AsyncSession, owner_id: uuid.UUID, todo_ids: Iterable[uuid.UUID]
) -> list[Todo]:
    """Load todos in request order; any foreign or missing id rejects the batch."""
    wanted = list(dict.fromkeys(todo_ids))
    result = await session.execute(
        select(Todo).where(Todo.id.in_(wanted), Todo.owner_id == owner_id)
    )
    found = {todo.id: todo for todo in result.scalars().all()}
    missing = [todo_id for todo_id in wanted if todo_id not in found]
    if missing:
        raise OwnershipError(missing)
    return [found[todo_id] for todo_id in wanted]


async def _check_custom_status(
    session: AsyncSession, owner_id: uuid.UUID, custom_status_id: Optional[uuid.UUID]
) -> None:
    if custom_status_id is None:
        return
    custom_status = await session.get(CustomStatus, custom_status_id)
    if not custom_status or custom_status.owner_id != owner_id:
        raise OwnershipError([custom_status_id])


async def _check_task(session: AsyncSession, owner_id: uuid.UUID, task_id: Optional[uuid.UUID]) -> None:
    if task_id is None:
        return
    task = await session.get(Task, task_id)
    if not task or task.owner_id != owner_id:
        raise OwnershipError([task_id])


async def next_todo_position(
    session: AsyncSession,
    owner_id: uuid.UUID,
    status: TodoStatus,
    custom_status_id: Optional[uuid.UUID],
) -> int:
    return await positions.next_position(session, Todo, todo_scope(owner_id, status, custom_status_id))


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def list_todos(
    session: AsyncSession,
    owner_id: uuid.UUID,
    *,
    archived: bool = False,
    bucket: Optional[ArchiveBucket] = None,
    status: Optional[TodoStatus] = None,
) -> list[Todo]:
    query = select(Todo).where(Todo.owner_id == owner_id)
    if status is not None:
        query = query.where(Todo.status == status.value)

    if archived:
        query = query.where(Todo.archived_at.is_not(None))
        if bucket is not None:
            query = query.where(Todo.archived_bucket == bucket.value)
        query = query.order_by(Todo.archived_at.desc())
    else:
        query = query.where(Todo.archived_at.is_(None)).order_by(
            Todo.status, Todo.custom_status_id, Todo.position
        )

    result = await session.execute(query)
    return list(result.scalars().all())


async def create_todo(session: AsyncSession, owner_id: uuid.UUID, todo_in: TodoCreate) -> Todo:
    await _check_custom_status(session, owner_id, todo_in.custom_status_id)
    await _check_task(session, owner_id, todo_in.task_id)

    todo = Todo(
        owner_id=owner_id,
        title=todo_in.title,
        description=todo_in.description,
        status=todo_in.status.value,
        custom_status_id=todo_in.custom_status_id,
        priority=todo_in.priority.value,
        tags=list(todo_in.tags),
        due_date=_utc(todo_in.due_date),
        task_id=todo_in.task_id,
        position=await next_todo_position(
            session, owner_id, todo_in.status, todo_in.custom_status_id
        ),
    )
    session.add(todo)
    await positions.flush(session)
    return todo


async def update_todo(session: AsyncSession, todo: Todo, todo_in: TodoUpdate) -> Todo:
    """Apply field changes; a status change moves the todo to the end of its new column."""
    data = todo_in.model_dump(exclude_unset=True)
    new_status = data.pop("status", None)

    for key, value in data.items():
        if value is None and key in ("title", "priority", "tags"):
            continue
        if key == "priority":
            value = value.value if hasattr(value, "value") else value
        elif key == "due_date":
            value = _utc(value)
        setattr(todo, key, value)
    session.add(todo)

    if new_status is not None and TodoStatus(new_status) != TodoStatus(todo.status):
        await move_todo(session, todo, TodoStatus(new_status), todo.custom_status_id, -1)
    else:
        await positions.flush(session)
    return todo


async def delete_todo(session: AsyncSession, todo: Todo) -> None:
    """Delete a todo and close the gap it leaves in its column."""
    location = location_of(todo)
    was_active = todo.archived_at is None
    owner_id = todo.owner_id

    await session.delete(todo)
    await positions.flush(session)
    if was_active:
        await positions.close_gap(
            session, Todo, todo_scope(owner_id, location.status, location.custom_status_id)
        )


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


async def move_todo(
    session: AsyncSession,
    todo: Todo,
    status: TodoStatus,
    custom_status_id: Optional[uuid.UUID],
    position: int,
) -> Optional[TodoLocation]:
    """Move a todo to ``position`` of the column (status, custom status).

    Returns the previous location when the todo changed column, else None.
    """
    if todo.archived_at is not None:
        raise ValidationError("Archived todos cannot be moved")

    previous = location_of(todo)
    if status == previous.status and custom_status_id == previous.custom_status_id:
        await positions.move_within(
            session, Todo, todo, todo_scope(todo.owner_id, status, custom_status_id), position
        )
        return None

    await _check_custom_status(session, todo.owner_id, custom_status_id)
    await positions.move_across(
        session,
        Todo,
        todo,
        todo_scope(todo.owner_id, previous.status, previous.custom_status_id),
        todo_scope(todo.owner_id, status, custom_status_id),
        position,
        status=status.value,
        custom_status_id=custom_status_id,
    )
    log.info(
        "todo.moved",
        todo_id=str(todo.id),
        from_status=previous.status.value,
        to_status=status.value,
        position=todo.position,
    )
    return previous


async def reorder_todos(
    session: AsyncSession, owner_id: uuid.UUID, reorder: TodoReorder
) -> list[Todo]:
    """Give the listed todos positions 0..k-1 in their column, in request order."""
    ids: Sequence[uuid.UUID] = reorder.todo_ids
    if len(set(ids)) != len(ids):
        raise ValidationError("Duplicate todo ids in reorder request")

    todos = await get_owned_todos(session, owner_id, ids)
    outside = [
        t.id
        for t in todos
        if t.archived_at is not None
        or TodoStatus(t.status) != reorder.status
        or t.custom_status_id != reorder.custom_status_id
    ]
    if outside:
        raise ValidationError(
            "Todos not in the requested column: " + ", ".join(str(i) for i in outside)
        )

    return await positions.reorder(
        session, Todo, todo_scope(owner_id, reorder.status, reorder.custom_status_id), ids
    )
