"""
Task endpoints: kanban lists and task moves.

Moving a task into a list of kind TODO, IN_PROGRESS or COMPLETE sets its
status accordingly; CUSTOM lists leave the status alone.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.database import get_session
from app.services import tasks as task_service
from planner_shared.schemas.tasks import (
    TaskCreate,
    TaskListCreate,
    TaskListRead,
    TaskMove,
    TaskRead,
)

router = APIRouter()


@router.post("/lists", response_model=TaskListRead, status_code=201)
async def create_task_list_endpoint(
    list_in: TaskListCreate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Append a list to a project; its kind defaults from the name."""
    task_list = await task_service.create_task_list(session, auth.user_id, list_in)
    await session.commit()
    await session.refresh(task_list)
    return task_list


@router.post("/", response_model=TaskRead, status_code=201)
async def create_task_endpoint(
    task_in: TaskCreate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    task = await task_service.create_task(session, auth.user_id, task_in)
    await session.commit()
    await session.refresh(task)
    return task


@router.post("/move", response_model=TaskRead)
async def move_task_endpoint(
    move: TaskMove,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    task = await task_service.move_task(session, auth.user_id, move)
    await session.commit()
    await session.refresh(task)
    return task


@router.delete("/{task_id}", status_code=204)
async def delete_task_endpoint(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    task = await task_service.get_task_or_404(session, task_id, auth.user_id)
    await task_service.delete_task(session, task)
    await session.commit()
    return Response(status_code=204)
