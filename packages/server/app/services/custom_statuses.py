"""Custom status service: user-defined todo board columns."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ConflictError, NotFoundError, OwnershipError, ValidationError
from app.models.custom_status import CustomStatus
from app.models.todo import Todo
from app.services import positions
from planner_shared.schemas.custom_statuses import (
    CustomStatusCreate,
    CustomStatusReorder,
    CustomStatusUpdate,
)

log = structlog.get_logger()


def status_scope(owner_id: uuid.UUID) -> list:
    return [CustomStatus.owner_id == owner_id]


async def get_custom_status_or_404(
    session: AsyncSession, status_id: uuid.UUID, owner_id: uuid.UUID
) -> CustomStatus:
    custom_status = await session.get(CustomStatus, status_id)
    if not custom_status:
        raise NotFoundError("Custom status not found")
    if custom_status.owner_id != owner_id:
        raise OwnershipError([status_id])
    return custom_status


async def list_custom_statuses(session: AsyncSession, owner_id: uuid.UUID) -> list[CustomStatus]:
    return await positions.scope_rows(session, CustomStatus, status_scope(owner_id))


async def create_custom_status(
    session: AsyncSession, owner_id: uuid.UUID, status_in: CustomStatusCreate
) -> CustomStatus:
    custom_status = CustomStatus(
        owner_id=owner_id,
        name=status_in.name,
        color=status_in.color,
        position=await positions.next_position(session, CustomStatus, status_scope(owner_id)),
    )
    session.add(custom_status)
    await positions.flush(session)
    return custom_status


async def update_custom_status(
    session: AsyncSession, custom_status: CustomStatus, status_in: CustomStatusUpdate
) -> CustomStatus:
    for key, value in status_in.model_dump(exclude_unset=True).items():
        if key == "name" and value is None:
            continue
        setattr(custom_status, key, value)
    session.add(custom_status)
    await positions.flush(session)
    return custom_status


async def reorder_custom_statuses(
    session: AsyncSession, owner_id: uuid.UUID, reorder: CustomStatusReorder
) -> list[CustomStatus]:
    ids = reorder.status_ids
    if len(set(ids)) != len(ids):
        raise ValidationError("Duplicate status ids in reorder request")

    result = await session.execute(
        select(CustomStatus.id).where(CustomStatus.id.in_(ids), CustomStatus.owner_id == owner_id)
    )
    owned = set(result.scalars().all())
    missing = [i for i in ids if i not in owned]
    if missing:
        raise OwnershipError(missing)

    return await positions.reorder(session, CustomStatus, status_scope(owner_id), ids)


async def delete_custom_status(session: AsyncSession, custom_status: CustomStatus) -> None:
    """Delete a column that no active todo uses.

    Archived todos keep their history but lose the reference.
    """
    in_use = await session.execute(
        select(func.count()).select_from(Todo).where(
            Todo.custom_status_id == custom_status.id,
            Todo.archived_at.is_(None),
        )
    )
    count = in_use.scalar_one()
    if count:
        raise ConflictError(f"Custom status is used by {count} active todo(s)")

    await session.execute(
        update(Todo)
        .where(Todo.custom_status_id == custom_status.id)
        .values(custom_status_id=None)
        .execution_options(synchronize_session=False)
    )
    owner_id, status_id = custom_status.owner_id, custom_status.id
    await session.delete(custom_status)
    await positions.flush(session)
    await positions.close_gap(session, CustomStatus, status_scope(owner_id))
    log.info("custom_status.deleted", status_id=str(status_id), owner_id=str(owner_id))
