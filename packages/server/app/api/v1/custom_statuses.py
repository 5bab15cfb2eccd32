"""Custom status endpoints: user-defined todo board columns."""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.database import get_session
from app.services import custom_statuses as status_service
from planner_shared.schemas.custom_statuses import (
    CustomStatusCreate,
    CustomStatusRead,
    CustomStatusReorder,
    CustomStatusUpdate,
)

router = APIRouter()


@router.get("/", response_model=List[CustomStatusRead])
async def list_custom_statuses_endpoint(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    return await status_service.list_custom_statuses(session, auth.user_id)


@router.post("/", response_model=CustomStatusRead, status_code=201)
async def create_custom_status_endpoint(
    status_in: CustomStatusCreate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    custom_status = await status_service.create_custom_status(session, auth.user_id, status_in)
    await session.commit()
    await session.refresh(custom_status)
    return custom_status


@router.patch("/reorder", response_model=List[CustomStatusRead])
async def reorder_custom_statuses_endpoint(
    reorder: CustomStatusReorder,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    statuses = await status_service.reorder_custom_statuses(session, auth.user_id, reorder)
    await session.commit()
    return statuses


@router.patch("/{status_id}", response_model=CustomStatusRead)
async def update_custom_status_endpoint(
    status_id: uuid.UUID,
    status_in: CustomStatusUpdate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    custom_status = await status_service.get_custom_status_or_404(session, status_id, auth.user_id)
    await status_service.update_custom_status(session, custom_status, status_in)
    await session.commit()
    await session.refresh(custom_status)
    return custom_status


@router.delete("/{status_id}", status_code=204)
async def delete_custom_status_endpoint(
    status_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """409 while active todos still sit in the column."""
    custom_status = await status_service.get_custom_status_or_404(session, status_id, auth.user_id)
    await status_service.delete_custom_status(session, custom_status)
    await session.commit()
    return Response(status_code=204)
