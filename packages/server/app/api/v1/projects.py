"""
Project endpoints: list, create (with default TODO / IN PROGRESS / COMPLETE
lists), reorder and board detail.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.database import get_session
from app.services import projects as project_service
from planner_shared.schemas.projects import (
    ProjectCreate,
    ProjectDetail,
    ProjectRead,
    ProjectReorder,
)

router = APIRouter()


@router.get("/", response_model=List[ProjectRead])
async def list_projects_endpoint(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.list_projects(session, auth.user_id)


@router.post("/", response_model=ProjectDetail, status_code=201)
async def create_project_endpoint(
    project_in: ProjectCreate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.create_project(session, auth.user_id, project_in)
    await session.commit()
    await session.refresh(project)
    return await project_service.project_detail(session, project)


@router.patch("/reorder", response_model=List[ProjectRead])
async def reorder_projects_endpoint(
    reorder: ProjectReorder,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    projects = await project_service.reorder_projects(session, auth.user_id, reorder)
    await session.commit()
    return projects


@router.get("/{project_id}", response_model=ProjectDetail)
async def get_project_endpoint(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Project with its lists and tasks in board order."""
    project = await project_service.get_project_or_404(session, project_id, auth.user_id)
    return await project_service.project_detail(session, project)
