"""
Project service layer.

Handles:
- Project creation with the three default kanban lists
- Project ordering per owner
- Board detail (lists with their tasks, in position order)
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFoundError, OwnershipError, ValidationError
from app.models.project import Project
from app.models.task import Task, TaskList
from app.services import positions
from app.services.tasks import list_scope
from planner_shared.schemas.projects import (
    DEFAULT_TASK_LISTS,
    ProjectCreate,
    ProjectDetail,
    ProjectReorder,
)
from planner_shared.schemas.tasks import TaskListWithTasks, TaskRead


def project_scope(owner_id: uuid.UUID) -> list:
    return [Project.owner_id == owner_id]


async def get_project_or_404(
    session: AsyncSession, project_id: uuid.UUID, owner_id: uuid.UUID
) -> Project:
    project = await session.get(Project, project_id)
    if not project:
        raise NotFoundError("Project not found")
    if project.owner_id != owner_id:
        raise OwnershipError([project_id])
    return project


async def list_projects(session: AsyncSession, owner_id: uuid.UUID) -> list[Project]:
    return await positions.scope_rows(session, Project, project_scope(owner_id))


async def create_project(
    session: AsyncSession, owner_id: uuid.UUID, project_in: ProjectCreate
) -> Project:
    project = Project(
        owner_id=owner_id,
        name=project_in.name,
        description=project_in.description,
        color=project_in.color,
        position=await positions.next_position(session, Project, project_scope(owner_id)),
    )
    session.add(project)
    await positions.flush(session)

    for index, (name, kind, color) in enumerate(DEFAULT_TASK_LISTS):
        session.add(
            TaskList(
                owner_id=owner_id,
                project_id=project.id,
                name=name,
                kind=kind.value,
                color=color,
                position=index,
            )
        )
    await positions.flush(session)
    return project


async def reorder_projects(
    session: AsyncSession, owner_id: uuid.UUID, reorder: ProjectReorder
) -> list[Project]:
    ids = reorder.project_ids
    if len(set(ids)) != len(ids):
        raise ValidationError("Duplicate project ids in reorder request")

    result = await session.execute(
        select(Project.id).where(Project.id.in_(ids), Project.owner_id == owner_id)
    )
    owned = set(result.scalars().all())
    missing = [i for i in ids if i not in owned]
    if missing:
        raise OwnershipError(missing)

    return await positions.reorder(session, Project, project_scope(owner_id), ids)


async def project_detail(session: AsyncSession, project: Project) -> ProjectDetail:
    """Project with its lists and their tasks, everything in position order."""
    task_lists = await positions.scope_rows(
        session, TaskList, list_scope(project.owner_id, project.id)
    )
    tasks_by_list: dict[uuid.UUID, list[Task]] = {tl.id: [] for tl in task_lists}
    if task_lists:
        result = await session.execute(
            select(Task)
            .where(Task.task_list_id.in_(list(tasks_by_list)))
            .order_by(Task.position, Task.id)
        )
        for task in result.scalars().all():
            tasks_by_list[task.task_list_id].append(task)

    detail = ProjectDetail.model_validate(project)
    detail.task_lists = [
        TaskListWithTasks.model_validate(tl).model_copy(
            update={"tasks": [TaskRead.model_validate(t) for t in tasks_by_list[tl.id]]}
        )
        for tl in task_lists
    ]
    return detail
