"""
Archive policy service: per-user settings read with defaults, upserted whole.
"""

from __future__ import annotations

import uuid

import structlog
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ValidationError
from app.models.archive import ArchivePolicy
from app.models.base import utcnow
from planner_shared.schemas.archive import ArchivePolicySettings, ArchivePolicyUpdate

log = structlog.get_logger()


def to_settings(row: ArchivePolicy | None) -> ArchivePolicySettings:
    """Stored row merged over the defaults."""
    if row is None:
        return ArchivePolicySettings()
    return ArchivePolicySettings.model_validate(row)


async def get_or_default(session: AsyncSession, owner_id: uuid.UUID) -> ArchivePolicySettings:
    """Never fails for a missing row and never creates one."""
    row = await session.get(ArchivePolicy, owner_id)
    return to_settings(row)


async def upsert_policy(
    session: AsyncSession,
    owner_id: uuid.UUID,
    partial: ArchivePolicyUpdate | dict,
) -> ArchivePolicySettings:
    """Merge ``partial`` over the current (or default) policy and store all fields."""
    try:
        if isinstance(partial, dict):
            partial = ArchivePolicyUpdate.model_validate(partial)
        row = await session.get(ArchivePolicy, owner_id)
        merged = to_settings(row).model_dump()
        merged.update(partial.model_dump(exclude_unset=True))
        settings = ArchivePolicySettings.model_validate(merged)
    except SchemaValidationError as exc:
        raise ValidationError(_first_error(exc)) from exc

    values = settings.model_dump(mode="json")
    if row is None:
        row = ArchivePolicy(owner_id=owner_id, **values)
    else:
        for key, value in values.items():
            setattr(row, key, value)
        row.updated_at = utcnow()
    session.add(row)
    await session.flush()

    log.info("archive_policy.updated", owner_id=str(owner_id), **values)
    return settings


async def list_enabled_policies(session: AsyncSession) -> list[ArchivePolicy]:
    result = await session.execute(
        select(ArchivePolicy).where(ArchivePolicy.auto_archive_enabled == True)  # noqa: E712
    )
    return list(result.scalars().all())


def _first_error(exc: SchemaValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    return f"{field}: {error['msg']}" if field else error["msg"]
