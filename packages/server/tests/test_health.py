"""
Health and readiness endpoint tests.
"""

from httpx import AsyncClient

from app.core.database import build_engine, build_session_factory, session_scope


async def test_health_check(client: AsyncClient):
    """Health endpoint should return status ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_ready_check(client: AsyncClient, scope, monkeypatch):
    """Ready endpoint reports the database check."""
    monkeypatch.setattr("app.main.get_session_context", scope)
    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready", "checks": {"database": True}}


async def test_ready_without_database(client: AsyncClient, tmp_path, monkeypatch):
    broken = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nowhere.db'}")
    monkeypatch.setattr("app.main.get_session_context", session_scope(build_session_factory(broken)))
    response = await client.get("/ready")
    assert response.status_code == 503
    assert response.json()["checks"]["database"] is False
    await broken.dispose()


async def test_api_root(client: AsyncClient):
    """API v1 root should return version and endpoint list."""
    response = await client.get("/api/v1/")
    assert response.status_code == 200
    data = response.json()
    assert data["api"] == "v1"
    assert "/todos" in data["endpoints"]
