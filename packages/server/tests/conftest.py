"""
Shared fixtures: a file-backed SQLite database per test, users, and an
HTTP client whose requests run against that database as a given user.
"""

from __future__ import annotations

import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.database import (
    build_engine,
    build_session_factory,
    get_session,
    init_db,
    session_scope,
)
from app.main import create_app
from app.models.user import User
from app.services.undo import MemoryUndoStore


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'planner.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def scope(engine):
    """Transactional session factory bound to the test database."""
    return session_scope(build_session_factory(engine))


@pytest.fixture
async def session(scope):
    async with scope() as s:
        yield s


@pytest.fixture
def make_user(scope):
    async def _make_user(name: str = "user") -> User:
        async with scope() as s:
            user = User(email=f"{name}-{uuid.uuid4().hex[:8]}@example.com", display_name=name)
            s.add(user)
        return user

    return _make_user


@pytest.fixture
async def user(make_user) -> User:
    return await make_user("alice")


@pytest.fixture
async def other_user(make_user) -> User:
    return await make_user("bob")


@pytest.fixture
def undo_store():
    return MemoryUndoStore(ttl_seconds=30, max_entries=100)


@pytest.fixture
def app(scope, user, undo_store):
    app = create_app(undo_store=undo_store)

    async def override_session():
        async with scope() as s:
            yield s

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_authenticated_user] = lambda: AuthenticatedUser(user)
    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
