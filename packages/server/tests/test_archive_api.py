"""
HTTP tests for the archive endpoints and manual archive through /todos.

Tests cover:
- Settings defaults, partial PATCH, field validation
- Batch archive with a foreign id returns 403 and changes nothing
- Archive then unarchive round trip and log listing
"""

from __future__ import annotations

import pytest

from app.services.todos import create_todo
from planner_shared.schemas.common import TodoStatus
from planner_shared.schemas.todos import TodoCreate


async def new_todo(scope, owner, **fields):
    async with scope() as session:
        todo = await create_todo(session, owner.id, TodoCreate(title="todo", **fields))
    return str(todo.id)


async def test_settings_defaults(client):
    response = await client.get("/api/v1/archive/settings")

    assert response.status_code == 200
    assert response.json() == {
        "auto_archive_enabled": True,
        "auto_archive_time": "09:00",
        "unfinished_grace_days": 1,
        "unfinished_grace_unit": "DAY",
        "cleanup_finished_after_days": 90,
        "cleanup_unfinished_after_days": 30,
    }


async def test_settings_partial_update(client):
    response = await client.patch(
        "/api/v1/archive/settings", json={"auto_archive_time": "21:30", "unfinished_grace_unit": "HOUR"}
    )
    assert response.status_code == 200

    data = (await client.get("/api/v1/archive/settings")).json()
    assert data["auto_archive_time"] == "21:30"
    assert data["unfinished_grace_unit"] == "HOUR"
    assert data["cleanup_finished_after_days"] == 90


@pytest.mark.parametrize(
    "body",
    [
        {"auto_archive_time": "25:00"},
        {"unfinished_grace_days": 1000},
        {"cleanup_unfinished_after_days": 0},
    ],
)
async def test_settings_invalid(client, body):
    response = await client.patch("/api/v1/archive/settings", json=body)
    assert response.status_code == 422


async def test_archive_foreign_id_forbidden(client, scope, user, other_user):
    mine = await new_todo(scope, user)
    theirs = await new_todo(scope, other_user)

    response = await client.post("/api/v1/todos/archive", json={"todo_ids": [mine, theirs]})

    assert response.status_code == 403
    assert theirs in response.json()["detail"]
    active = (await client.get("/api/v1/todos/")).json()
    assert [t["id"] for t in active] == [mine]


async def test_archive_unarchive_round_trip(client, scope, user):
    done = await new_todo(scope, user, status=TodoStatus.COMPLETE)
    waiting = await new_todo(scope, user)

    response = await client.post("/api/v1/todos/archive", json={"todo_ids": [done, waiting]})
    assert response.status_code == 200
    buckets = {t["id"]: t["archived_bucket"] for t in response.json()}
    assert buckets == {done: "FINISHED", waiting: "UNFINISHED"}

    archived = (await client.get("/api/v1/todos/", params={"archived": "true", "bucket": "FINISHED"})).json()
    assert [t["id"] for t in archived] == [done]

    days = (await client.get("/api/v1/archive/logs", params={"days": 1})).json()
    assert len(days) == 1
    assert (days[0]["finished"], days[0]["unfinished"]) == (1, 1)

    latest = (await client.get("/api/v1/archive/logs/latest")).json()
    assert latest["total"] == 2

    response = await client.post(
        "/api/v1/todos/archive", json={"todo_ids": [waiting], "action": "UNARCHIVE"}
    )
    assert response.status_code == 200
    assert response.json()[0]["archived_at"] is None
    active = (await client.get("/api/v1/todos/")).json()
    assert [t["id"] for t in active] == [waiting]


async def test_logs_days_bounds(client):
    assert (await client.get("/api/v1/archive/logs", params={"days": 31})).status_code == 422
    assert (await client.get("/api/v1/archive/logs", params={"days": 0})).status_code == 422
