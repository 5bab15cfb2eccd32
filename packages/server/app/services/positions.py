"""
Applying position plans to the database.

Each helper loads the affected scope rows into the session, computes a plan
with ``app.services.ordering`` and assigns the new positions to the loaded
objects. One ``flush`` then writes the whole set as a single batch inside the
caller's transaction; nothing is visible to other sessions before commit and
a failure rolls every row back together.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import PersistenceError
from app.services.ordering import (
    PositionUpdate,
    plan_append,
    plan_compact,
    plan_move_across,
    plan_move_within,
    plan_reorder,
)

log = structlog.get_logger()


async def scope_rows(session: AsyncSession, model: Any, criteria: Sequence[Any]) -> list[Any]:
    result = await session.execute(
        select(model).where(*criteria).order_by(model.position, model.id)
    )
    return list(result.scalars().all())


async def next_position(session: AsyncSession, model: Any, criteria: Sequence[Any]) -> int:
    result = await session.execute(select(func.max(model.position)).where(*criteria))
    last = result.scalar_one_or_none()
    return plan_append([] if last is None else [last])


def _items(rows: Sequence[Any]) -> list[tuple[Any, int]]:
    return [(row.id, row.position) for row in rows]


def _apply(rows: Sequence[Any], updates: Sequence[PositionUpdate]) -> None:
    by_id = {row.id: row for row in rows}
    for update in updates:
        by_id[update.item_id].position = update.new_position


async def flush(session: AsyncSession) -> None:
    try:
        await session.flush()
    except SQLAlchemyError as exc:
        log.error("positions.flush_failed", error=str(exc))
        raise PersistenceError() from exc


async def move_within(
    session: AsyncSession,
    model: Any,
    item: Any,
    criteria: Sequence[Any],
    target: int,
) -> list[PositionUpdate]:
    rows = await scope_rows(session, model, criteria)
    updates = plan_move_within(_items(rows), item.id, target)
    _apply(rows, updates)
    await flush(session)
    return updates


async def move_across(
    session: AsyncSession,
    model: Any,
    item: Any,
    source_criteria: Sequence[Any],
    target_criteria: Sequence[Any],
    target: int,
    **scope_values: Any,
) -> list[PositionUpdate]:
    """Move ``item`` into another scope; ``scope_values`` are the new scope columns."""
    source_rows = await scope_rows(session, model, source_criteria)
    target_rows = await scope_rows(session, model, target_criteria)
    updates = plan_move_across(_items(source_rows), _items(target_rows), item.id, target)
    _apply([*source_rows, *target_rows], [u for u in updates if u.item_id != item.id])

    moved = next(u for u in updates if u.item_id == item.id)
    item.position = moved.new_position
    for key, value in scope_values.items():
        setattr(item, key, value)
    session.add(item)
    await flush(session)
    return updates


async def reorder(
    session: AsyncSession,
    model: Any,
    criteria: Sequence[Any],
    ordered_ids: Sequence[Any],
) -> list[Any]:
    """Bulk reorder; returns the scope rows in their new order."""
    rows = await scope_rows(session, model, criteria)
    updates = plan_reorder(_items(rows), ordered_ids)
    _apply(rows, updates)
    await flush(session)
    return sorted(rows, key=lambda row: row.position)


async def close_gap(session: AsyncSession, model: Any, criteria: Sequence[Any]) -> list[PositionUpdate]:
    rows = await scope_rows(session, model, criteria)
    updates = plan_compact(_items(rows))
    _apply(rows, updates)
    await flush(session)
    return updates
