"""
Task service layer: kanban lists and the tasks inside them.

Handles:
- Task list creation with an explicit ListKind (inferred from the name when omitted)
- Task creation appended to its list
- Moves between lists, with task status following the destination list's kind
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, OwnershipError
from app.models.project import Project
from app.models.task import Task, TaskList
from app.services import positions
from app.services.ordering import derive_task_status
from planner_shared.schemas.common import ListKind, TaskStatus
from planner_shared.schemas.tasks import TaskCreate, TaskListCreate, TaskMove

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def task_scope(owner_id: uuid.UUID, task_list_id: uuid.UUID) -> list:
    return [Task.owner_id == owner_id, Task.task_list_id == task_list_id]


def list_scope(owner_id: uuid.UUID, project_id: uuid.UUID) -> list:
    return [TaskList.owner_id == owner_id, TaskList.project_id == project_id]


async def get_task_or_404(session: AsyncSession, task_id: uuid.UUID, owner_id: uuid.UUID) -> Task:
    task = await session.get(Task, task_id)
    if not task:
        raise NotFoundError("Task not found")
    if task.owner_id != owner_id:
        raise OwnershipError([task_id])
    return task


async def get_task_list_or_404(
    session: AsyncSession, task_list_id: uuid.UUID, owner_id: uuid.UUID
) -> TaskList:
    task_list = await session.get(TaskList, task_list_id)
    if not task_list:
        raise NotFoundError("Task list not found")
    if task_list.owner_id != owner_id:
        raise OwnershipError([task_list_id])
    return task_list


# ---------------------------------------------------------------------------
# Task lists
# ---------------------------------------------------------------------------


async def create_task_list(
    session: AsyncSession, owner_id: uuid.UUID, list_in: TaskListCreate
) -> TaskList:
    project = await session.get(Project, list_in.project_id)
    if not project:
        raise NotFoundError("Project not found")
    if project.owner_id != owner_id:
        raise OwnershipError([list_in.project_id])

    kind = list_in.kind or ListKind.from_name(list_in.name)
    task_list = TaskList(
        owner_id=owner_id,
        project_id=project.id,
        name=list_in.name,
        kind=kind.value,
        color=list_in.color,
        position=await positions.next_position(session, TaskList, list_scope(owner_id, project.id)),
    )
    session.add(task_list)
    await positions.flush(session)
    return task_list


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


async def create_task(session: AsyncSession, owner_id: uuid.UUID, task_in: TaskCreate) -> Task:
    task_list = await get_task_list_or_404(session, task_in.task_list_id, owner_id)
    task = Task(
        owner_id=owner_id,
        task_list_id=task_list.id,
        title=task_in.title,
        description=task_in.description,
        status=derive_task_status(ListKind(task_list.kind), TaskStatus.TODO).value,
        priority=task_in.priority.value,
        position=await positions.next_position(session, Task, task_scope(owner_id, task_list.id)),
    )
    session.add(task)
    await positions.flush(session)
    return task


async def move_task(session: AsyncSession, owner_id: uuid.UUID, move: TaskMove) -> Task:
    """Drop a task at ``new_position`` of ``new_list_id``.

    The status is taken from the destination list's kind; custom lists keep
    the task's current status.
    """
    task = await get_task_or_404(session, move.task_id, owner_id)
    destination = await get_task_list_or_404(session, move.new_list_id, owner_id)

    if destination.id == task.task_list_id:
        await positions.move_within(
            session, Task, task, task_scope(owner_id, destination.id), move.new_position
        )
        return task

    status = derive_task_status(ListKind(destination.kind), TaskStatus(task.status))
    source_list_id = task.task_list_id
    await positions.move_across(
        session,
        Task,
        task,
        task_scope(owner_id, source_list_id),
        task_scope(owner_id, destination.id),
        move.new_position,
        task_list_id=destination.id,
        status=status.value,
    )
    log.info(
        "task.moved",
        task_id=str(task.id),
        from_list=str(source_list_id),
        to_list=str(destination.id),
        status=status.value,
        position=task.position,
    )
    return task


async def delete_task(session: AsyncSession, task: Task) -> None:
    """Delete a task and close the gap in its list."""
    owner_id, task_list_id = task.owner_id, task.task_list_id
    await session.delete(task)
    await positions.flush(session)
    await positions.close_gap(session, Task, task_scope(owner_id, task_list_id))
