"""End-to-end tests for the /auth endpoints."""

from datetime import UTC, datetime, timedelta

import asyncio

import pytest
from httpx import AsyncClient

from polaris_api.config import settings
from polaris_api.core import SessionTokenIssuer
from polaris_api.models import AppVersionCreate


async def login(client: AsyncClient, code: str, **profile) -> dict:
    response = await client.post("/auth/wechat-login", json={"code": code, **profile})
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["code"] == 0
    assert body["message"] == "success"
    return body["data"]


class TestWechatLogin:
    """POST /auth/wechat-login"""

    @pytest.mark.asyncio
    async def test_first_login_then_user_info(self, client: AsyncClient):
        data = await login(client, "abc123", nickName="Mom", avatarUrl="https://img/a.png")

        assert data["isNewUser"] is True
        assert data["userInfo"]["openid"] == "ext-001"
        assert data["userInfo"]["nickName"] == "Mom"
        assert data["token"]

        response = await client.get(
            "/auth/user-info", headers={"Authorization": f"Bearer {data['token']}"}
        )
        assert response.status_code == 200
        info = response.json()["data"]
        assert info["openid"] == "ext-001"
        assert info["avatarUrl"] == "https://img/a.png"
        assert set(info) == {"openid", "nickName", "avatarUrl", "createTime", "lastLoginTime"}

    @pytest.mark.asyncio
    async def test_second_login_is_not_new(self, client: AsyncClient, user_store):
        await login(client, "abc123")
        data = await login(client, "abc123")

        assert data["isNewUser"] is False
        assert len(user_store.users) == 1

    @pytest.mark.asyncio
    async def test_rejected_code(self, client: AsyncClient, user_store):
        response = await client.post("/auth/wechat-login", json={"code": "forged"})

        assert response.status_code == 401
        body = response.json()
        assert body["code"] == 1002
        assert "timestamp" in body
        assert user_store.users == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"code": ""}, {"nickName": "Mom"}])
    async def test_missing_code(self, client: AsyncClient, payload):
        response = await client.post("/auth/wechat-login", json=payload)

        assert response.status_code == 400
        assert response.json()["code"] == 1001

    @pytest.mark.asyncio
    async def test_store_failure(self, client: AsyncClient, user_store):
        user_store.fail_with = RuntimeError("connection reset")

        response = await client.post("/auth/wechat-login", json={"code": "abc123"})

        assert response.status_code == 500
        assert response.json()["code"] == 2002
        assert "connection reset" not in response.text

    @pytest.mark.asyncio
    async def test_response_has_request_id(self, client: AsyncClient):
        response = await client.post(
            "/auth/wechat-login", json={"code": "abc123"}, headers={"X-Request-ID": "req-1"}
        )
        assert response.headers["X-Request-ID"] == "req-1"


class TestSessionEndpoints:
    @pytest.mark.asyncio
    async def test_refresh_token(self, client: AsyncClient, token_issuer):
        data = await login(client, "abc123")

        response = await client.post(
            "/auth/refresh-token", headers={"Authorization": f"Bearer {data['token']}"}
        )

        assert response.status_code == 200
        refreshed = response.json()["data"]
        assert refreshed["expiresIn"] == 259200
        assert token_issuer.verify(refreshed["token"]) == "ext-001"

    @pytest.mark.asyncio
    async def test_update_user_info(self, client: AsyncClient, auth_headers):
        await login(client, "abc123", nickName="Mom", avatarUrl="https://img/a.png")

        response = await client.put(
            "/auth/user-info", json={"nickName": "Dad"}, headers=auth_headers("ext-001")
        )

        assert response.status_code == 200
        info = response.json()["data"]
        assert info["nickName"] == "Dad"
        assert info["avatarUrl"] == ""

    @pytest.mark.asyncio
    async def test_update_user_info_requires_nickname(self, client: AsyncClient, auth_headers):
        await login(client, "abc123")

        response = await client.put(
            "/auth/user-info", json={"avatarUrl": "x"}, headers=auth_headers("ext-001")
        )
        assert response.status_code == 400
        assert response.json()["code"] == 1001

    @pytest.mark.asyncio
    async def test_unknown_user(self, client: AsyncClient, auth_headers):
        response = await client.get("/auth/user-info", headers=auth_headers("ext-404"))

        assert response.status_code == 404
        assert response.json()["code"] == 3001

    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient):
        response = await client.get("/auth/user-info")

        assert response.status_code == 401
        assert response.json()["code"] == 1002

    @pytest.mark.asyncio
    async def test_forged_token(self, client: AsyncClient):
        forged = SessionTokenIssuer("not-the-secret").issue("ext-001")

        response = await client.get("/auth/user-info", headers={"Authorization": f"Bearer {forged}"})

        assert response.status_code == 401
        assert response.json() == {
            "code": 3002,
            "message": "invalid or expired session",
            "timestamp": response.json()["timestamp"],
        }

    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient):
        issued_at = datetime.now(UTC) - timedelta(hours=73)
        expired = SessionTokenIssuer(settings.jwt_secret, clock=lambda: issued_at).issue("ext-001")

        response = await client.get(
            "/auth/user-info", headers={"Authorization": f"Bearer {expired}"}
        )

        assert response.status_code == 401
        assert response.json()["code"] == 3003


class TestAppVersion:
    """GET /auth/app-version"""

    @pytest.mark.asyncio
    async def test_no_active_version(self, client: AsyncClient):
        response = await client.get("/auth/app-version")

        assert response.status_code == 404
        assert response.json()["code"] == 1003

    @pytest.mark.asyncio
    async def test_active_version(self, client: AsyncClient, version_store):
        await version_store.create_app_version(
            AppVersionCreate(version="1.2.0", is_active=True, force_update=True)
        )

        response = await client.get("/auth/app-version")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["version"] == "1.2.0"
        assert data["forceUpdate"] is True
        assert isinstance(data["buildTime"], int)
        assert "isActive" not in data

    @pytest.mark.asyncio
    async def test_stalled_store_times_out(self, client: AsyncClient, test_app, monkeypatch):
        from polaris_api.api.deps import get_app_version_store

        class StalledStore:
            async def find_active_app_version(self):
                await asyncio.sleep(3600)

        async def stalled():
            return StalledStore()

        monkeypatch.setattr(settings, "external_call_timeout_seconds", 0.01)
        test_app.dependency_overrides[get_app_version_store] = stalled

        response = await asyncio.wait_for(client.get("/auth/app-version"), 5.0)

        assert response.status_code == 500
        assert response.json()["code"] == 2004
