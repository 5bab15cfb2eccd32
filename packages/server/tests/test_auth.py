"""
Tests for authentication.

Covers:
- JWT creation, decoding, expiry and tampering
- JWT revocation lookup (mocked Redis)
- Bearer token resolution to a user, UUID tokens in debug mode
- Security headers and request id middleware
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import jwt as pyjwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from app.core.auth import create_jwt, decode_jwt, is_jwt_revoked
from app.core.config import Settings
from app.core.database import get_session
from app.core.middleware import (
    SECURITY_HEADERS,
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
)
from app.main import create_app


# ---------------------------------------------------------------------------
# Unit Tests: JWT
# ---------------------------------------------------------------------------

class TestJWT:
    def test_create_and_decode(self):
        uid = uuid.uuid4()
        token, jti = create_jwt(uid)
        payload = decode_jwt(token)
        assert payload["sub"] == str(uid)
        assert payload["jti"] == jti

    def test_expired_jwt_raises(self):
        token, _ = create_jwt(uuid.uuid4(), expires_delta=timedelta(seconds=-1))
        with pytest.raises(pyjwt.ExpiredSignatureError):
            decode_jwt(token)

    def test_tampered_jwt_raises(self):
        token, _ = create_jwt(uuid.uuid4())
        header, payload, signature = token.split(".")
        # The last base64url character can carry unused bits, so flip one mid-signature
        middle = len(signature) // 2
        flipped = "A" if signature[middle] != "A" else "B"
        tampered = ".".join([header, payload, signature[:middle] + flipped + signature[middle + 1:]])
        with pytest.raises(pyjwt.InvalidSignatureError):
            decode_jwt(tampered)


# ---------------------------------------------------------------------------
# Unit Tests: JWT Revocation (mocked Redis)
# ---------------------------------------------------------------------------

class TestJWTRevocation:
    async def test_revoked_jti(self):
        mock_redis = AsyncMock()
        mock_redis.exists = AsyncMock(return_value=1)

        with patch("app.core.auth.get_redis", return_value=mock_redis):
            assert await is_jwt_revoked("test-jti-123") is True
        mock_redis.exists.assert_awaited_once_with("jwt:revoked:test-jti-123")

    async def test_non_revoked_jwt(self):
        mock_redis = AsyncMock()
        mock_redis.exists = AsyncMock(return_value=0)

        with patch("app.core.auth.get_redis", return_value=mock_redis):
            assert await is_jwt_revoked("non-existent-jti") is False


# ---------------------------------------------------------------------------
# Integration Tests: bearer authentication
# ---------------------------------------------------------------------------

@pytest.fixture
async def auth_client(scope, undo_store):
    """Client whose requests go through the real authentication dependency."""
    app = create_app(undo_store=undo_store)

    async def override_session():
        async with scope() as s:
            yield s

    app.dependency_overrides[get_session] = override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


class TestBearerAuth:
    async def test_missing_header(self, auth_client):
        response = await auth_client.get("/api/v1/todos/")
        assert response.status_code == 401

    async def test_valid_jwt(self, auth_client, user):
        token, _ = create_jwt(user.id)
        with patch("app.core.auth.is_jwt_revoked", AsyncMock(return_value=False)):
            response = await auth_client.get(
                "/api/v1/todos/", headers={"Authorization": f"Bearer {token}"}
            )
        assert response.status_code == 200
        assert response.json() == []

    async def test_revoked_jwt(self, auth_client, user):
        token, _ = create_jwt(user.id)
        with patch("app.core.auth.is_jwt_revoked", AsyncMock(return_value=True)):
            response = await auth_client.get(
                "/api/v1/todos/", headers={"Authorization": f"Bearer {token}"}
            )
        assert response.status_code == 401
        assert response.json()["detail"] == "Session has been revoked"

    async def test_unknown_user(self, auth_client):
        token, _ = create_jwt(uuid.uuid4())
        with patch("app.core.auth.is_jwt_revoked", AsyncMock(return_value=False)):
            response = await auth_client.get(
                "/api/v1/todos/", headers={"Authorization": f"Bearer {token}"}
            )
        assert response.status_code == 401
        assert response.json()["detail"] == "User not found"

    async def test_uuid_token_only_in_debug(self, auth_client, user, monkeypatch):
        headers = {"Authorization": f"Bearer {user.id}"}
        assert (await auth_client.get("/api/v1/todos/", headers=headers)).status_code == 401

        monkeypatch.setattr("app.core.auth.get_settings", lambda: Settings(debug=True))
        assert (await auth_client.get("/api/v1/todos/", headers=headers)).status_code == 200


# ---------------------------------------------------------------------------
# Integration Tests: Middleware
# ---------------------------------------------------------------------------

class TestMiddleware:
    def _make_app(self) -> FastAPI:
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware)
        app.add_middleware(RequestContextMiddleware)

        @app.get("/test")
        async def test_endpoint():
            return {"ok": True}

        return app

    def test_headers_present(self):
        client = TestClient(self._make_app())
        resp = client.get("/test")
        assert resp.status_code == 200
        for header, value in SECURITY_HEADERS.items():
            assert resp.headers.get(header) == value

    def test_request_id_echoed(self):
        client = TestClient(self._make_app())
        assert client.get("/test", headers={"X-Request-ID": "abc123"}).headers["X-Request-ID"] == "abc123"
        assert len(client.get("/test").headers["X-Request-ID"]) == 32
