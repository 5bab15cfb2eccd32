"""
Position planning for ordered sibling records (todos in a status column,
tasks in a list, lists in a project, custom statuses and projects of a user).

Everything here is pure: functions take the current ``(id, position)`` pairs
of a scope and return the ``PositionUpdate`` set that realizes an operation.
Applying the plan is the job of ``app.services.positions``.

Target positions address the scope's order after the moving item is taken
out, so they are clamped to ``[0, count]``; negative or too-large targets
append to the end. When a scope is dense (``0..n-1``) the plans reduce to the
usual shift rules:

- move down (``old < target``): items in ``(old, target]`` move up by one
- move up (``old > target``): items in ``[target, old)`` move down by one
- across scopes: the source closes its gap, the target opens a slot

A scope with gaps (left behind by archived or deleted rows) is compacted by
any move touching it.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass
from typing import Optional

from planner_shared.schemas.common import ListKind, TaskStatus

ItemId = Hashable
Item = tuple[ItemId, int]

LIST_KIND_STATUSES: dict[ListKind, TaskStatus] = {
    ListKind.TODO: TaskStatus.TODO,
    ListKind.IN_PROGRESS: TaskStatus.IN_PROGRESS,
    ListKind.COMPLETE: TaskStatus.COMPLETE,
}


@dataclass(frozen=True)
class PositionUpdate:
    item_id: ItemId
    old_position: int
    new_position: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _ordered_ids(items: Iterable[Item]) -> list[ItemId]:
    """Ids sorted by position; ties (never expected) broken by id."""
    return [item_id for item_id, _ in sorted(items, key=lambda it: (it[1], str(it[0])))]


def _renumber(
    ordered: Sequence[ItemId],
    current: dict[ItemId, int],
    *,
    always: Optional[ItemId] = None,
) -> list[PositionUpdate]:
    return [
        PositionUpdate(item_id, current[item_id], index)
        for index, item_id in enumerate(ordered)
        if current[item_id] != index or item_id == always
    ]


def clamp_target(target: int, count: int) -> int:
    """Clamp a drop target into ``[0, count]``; out of range means the end."""
    if target < 0 or target > count:
        return count
    return target


def is_dense(positions: Iterable[int]) -> bool:
    values = sorted(positions)
    return values == list(range(len(values)))


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


def plan_append(positions: Iterable[int]) -> int:
    """Position of a new item: one past the last, or 0 for an empty scope."""
    return max(positions, default=-1) + 1


def plan_move_within(items: Sequence[Item], item_id: ItemId, target: int) -> list[PositionUpdate]:
    """Move ``item_id`` to ``target`` inside its own scope."""
    current = dict(items)
    if item_id not in current:
        raise KeyError(item_id)

    others = [i for i in _ordered_ids(items) if i != item_id]
    others.insert(clamp_target(target, len(others)), item_id)
    return _renumber(others, current)


def plan_move_across(
    source_items: Sequence[Item],
    target_items: Sequence[Item],
    item_id: ItemId,
    target: int,
) -> list[PositionUpdate]:
    """Move ``item_id`` out of the source scope into the target scope.

    The returned plan always contains the moving item, since its scope changes
    even when its number does not.
    """
    source = dict(source_items)
    if item_id not in source:
        raise KeyError(item_id)

    remaining = [i for i in _ordered_ids(source_items) if i != item_id]
    updates = _renumber(remaining, source)

    destination = [i for i in _ordered_ids(target_items) if i != item_id]
    destination.insert(clamp_target(target, len(destination)), item_id)
    current = dict(target_items)
    current[item_id] = source[item_id]
    return updates + _renumber(destination, current, always=item_id)


def plan_reorder(items: Sequence[Item], ordered_ids: Sequence[ItemId]) -> list[PositionUpdate]:
    """Give ``ordered_ids`` positions ``0..k-1``; the rest of the scope follows
    in its previous relative order."""
    current = dict(items)
    unknown = [i for i in ordered_ids if i not in current]
    if unknown:
        raise KeyError(unknown[0])
    if len(set(ordered_ids)) != len(ordered_ids):
        raise ValueError("duplicate ids in ordering")

    listed = set(ordered_ids)
    rest = [i for i in _ordered_ids(items) if i not in listed]
    return _renumber(list(ordered_ids) + rest, current)


def plan_compact(items: Sequence[Item]) -> list[PositionUpdate]:
    """Close gaps, e.g. after an item was removed from the scope."""
    return _renumber(_ordered_ids(items), dict(items))


# ---------------------------------------------------------------------------
# Task status follows list membership
# ---------------------------------------------------------------------------


def derive_task_status(kind: ListKind, current: TaskStatus) -> TaskStatus:
    """Status a task takes on when dropped into a list of ``kind``."""
    return LIST_KIND_STATUSES.get(kind, current)
