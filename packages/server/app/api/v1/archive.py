"""
Archive endpoints: the caller's archive policy and archive history.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.config import get_settings
from app.core.database import get_session
from app.services import archive as archive_service
from app.services import archive_policy as policy_service
from planner_shared.schemas.archive import (
    ArchiveDaySummary,
    ArchiveLogDay,
    ArchivePolicySettings,
    ArchivePolicyUpdate,
)

router = APIRouter()


@router.get("/settings", response_model=ArchivePolicySettings)
async def get_archive_settings_endpoint(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Stored policy, or the defaults when the caller never saved one."""
    return await policy_service.get_or_default(session, auth.user_id)


@router.patch("/settings", response_model=ArchivePolicySettings)
async def update_archive_settings_endpoint(
    policy_in: ArchivePolicyUpdate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    settings = await policy_service.upsert_policy(session, auth.user_id, policy_in)
    await session.commit()
    return settings


@router.get("/logs", response_model=List[ArchiveLogDay])
async def list_archive_logs_endpoint(
    days: int = Query(14, ge=1, le=30),
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Archive entries grouped per day, newest day first."""
    now = archive_service.now_in_zone(get_settings().archive_timezone)
    return await archive_service.list_archive_logs(
        session, auth.user_id, now, days=days, date_from=date_from, date_to=date_to
    )


@router.get("/logs/latest", response_model=Optional[ArchiveDaySummary])
async def latest_archive_summary_endpoint(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Today's archive counts, or null when nothing was archived today."""
    now = archive_service.now_in_zone(get_settings().archive_timezone)
    return await archive_service.latest_summary(session, auth.user_id, now)
