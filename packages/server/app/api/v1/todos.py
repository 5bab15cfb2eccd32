"""
Todo endpoints: CRUD, board moves, bulk reorder, manual archive and undo.

Board columns are (status, custom status) pairs. A move that changes column
records an undo action; the client can send the todo back within the undo
window with POST /todos/undo/{action_id}.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.database import get_session
from app.core.errors import NotFoundError
from app.services import archive as archive_service
from app.services import todos as todo_service
from app.services.undo import UndoAction, UndoStore
from planner_shared.schemas.archive import ArchiveAction, ArchiveRequest
from planner_shared.schemas.common import ArchiveBucket, TodoStatus
from planner_shared.schemas.todos import (
    TodoCreate,
    TodoMove,
    TodoMoveResult,
    TodoRead,
    TodoReorder,
    TodoUpdate,
)

router = APIRouter()


def get_undo_store(request: Request) -> UndoStore:
    return request.app.state.undo_store


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[TodoRead])
async def list_todos_endpoint(
    archived: bool = False,
    bucket: Optional[ArchiveBucket] = None,
    status: Optional[TodoStatus] = None,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Active todos in board order, or archived todos newest first."""
    return await todo_service.list_todos(
        session, auth.user_id, archived=archived, bucket=bucket, status=status
    )


@router.post("/", response_model=TodoRead, status_code=201)
async def create_todo_endpoint(
    todo_in: TodoCreate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    todo = await todo_service.create_todo(session, auth.user_id, todo_in)
    await session.commit()
    await session.refresh(todo)
    return todo


@router.patch("/reorder", response_model=List[TodoRead])
async def reorder_todos_endpoint(
    reorder: TodoReorder,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Bulk reorder of one column; every id must be the caller's and in that column."""
    todos = await todo_service.reorder_todos(session, auth.user_id, reorder)
    await session.commit()
    return todos


@router.post("/archive", response_model=List[TodoRead])
async def archive_todos_endpoint(
    request_in: ArchiveRequest,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Archive or unarchive a batch of todos. One foreign id rejects the whole batch."""
    if request_in.action == ArchiveAction.UNARCHIVE:
        todos = await archive_service.manual_unarchive(session, auth.user_id, request_in.todo_ids)
    else:
        todos = await archive_service.manual_archive(
            session,
            auth.user_id,
            request_in.todo_ids,
            bucket=request_in.bucket,
            reason=request_in.reason,
            auto_archived=request_in.auto_archived,
        )
    await session.commit()
    return todos


# ---------------------------------------------------------------------------
# Undo
# ---------------------------------------------------------------------------


async def _apply_undo(session: AsyncSession, auth: AuthenticatedUser, action: Optional[UndoAction]):
    if action is None:
        raise NotFoundError("Nothing to undo")
    todo = await todo_service.get_todo_or_404(session, action.todo_id, auth.user_id)
    await todo_service.move_todo(
        session, todo, action.status, action.custom_status_id, action.position
    )
    await session.commit()
    await session.refresh(todo)
    return todo


@router.post("/undo", response_model=TodoRead)
async def undo_latest_endpoint(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
    undo_store: UndoStore = Depends(get_undo_store),
):
    """Undo the caller's most recent column change."""
    action = await undo_store.pop_latest(auth.user_id)
    return await _apply_undo(session, auth, action)


@router.post("/undo/{action_id}", response_model=TodoRead)
async def undo_action_endpoint(
    action_id: str,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
    undo_store: UndoStore = Depends(get_undo_store),
):
    action = await undo_store.pop(auth.user_id, action_id)
    return await _apply_undo(session, auth, action)


# ---------------------------------------------------------------------------
# Single todo
# ---------------------------------------------------------------------------


@router.get("/{todo_id}", response_model=TodoRead)
async def get_todo_endpoint(
    todo_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    return await todo_service.get_todo_or_404(session, todo_id, auth.user_id)


@router.patch("/{todo_id}", response_model=TodoRead)
async def update_todo_endpoint(
    todo_id: uuid.UUID,
    todo_in: TodoUpdate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Update fields; a new status moves the todo to the end of that column."""
    todo = await todo_service.get_todo_or_404(session, todo_id, auth.user_id)
    await todo_service.update_todo(session, todo, todo_in)
    await session.commit()
    await session.refresh(todo)
    return todo


@router.post("/{todo_id}/move", response_model=TodoMoveResult)
async def move_todo_endpoint(
    todo_id: uuid.UUID,
    move: TodoMove,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
    undo_store: UndoStore = Depends(get_undo_store),
):
    """Drag and drop. Out-of-range positions land at the end of the column."""
    todo = await todo_service.get_todo_or_404(session, todo_id, auth.user_id)
    previous = await todo_service.move_todo(
        session, todo, move.status, move.custom_status_id, move.position
    )
    await session.commit()
    await session.refresh(todo)

    undo_action_id = None
    if previous is not None:
        action = UndoAction(
            owner_id=auth.user_id,
            todo_id=todo.id,
            status=previous.status,
            custom_status_id=previous.custom_status_id,
            position=previous.position,
        )
        await undo_store.record(action)
        undo_action_id = action.id

    return TodoMoveResult(todo=TodoRead.model_validate(todo), undo_action_id=undo_action_id)


@router.delete("/{todo_id}", status_code=204)
async def delete_todo_endpoint(
    todo_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    todo = await todo_service.get_todo_or_404(session, todo_id, auth.user_id)
    await todo_service.delete_todo(session, todo)
    await session.commit()
    return Response(status_code=204)
