"""End-to-end tests for POST /upload."""

from pathlib import Path
from unittest.mock import patch

import pytest
from httpx import AsyncClient

from polaris_api.config import settings

JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 128


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_user_avatar(self, client: AsyncClient, auth_headers, upload_dir):
        response = await client.post(
            "/upload",
            data={"type": "user_avatar"},
            files={"file": ("me.jpg", JPEG, "image/jpeg")},
            headers=auth_headers("ext-001"),
        )

        assert response.status_code == 200, response.text
        data = response.json()["data"]
        assert data["path"].startswith("/uploads/images/users/user_avatar_")
        assert data["url"] == "https://api.test" + data["path"]
        assert data["size"] == len(JPEG)

        stored = Path(upload_dir) / "images" / "users" / data["filename"]
        assert stored.read_bytes() == JPEG

        # Served back as a static file without a token
        served = await client.get(data["path"])
        assert served.status_code == 200
        assert served.content == JPEG

    @pytest.mark.asyncio
    async def test_upload_baby_avatar_with_related_id(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/upload",
            data={"type": "baby_avatar", "related_id": "b42"},
            files={"file": ("kid.png", b"\x89PNG\r\n\x1a\n", "image/png")},
            headers=auth_headers("ext-001"),
        )

        assert response.status_code == 200
        assert response.json()["data"]["filename"].startswith("baby_avatar_b42_")

    @pytest.mark.asyncio
    async def test_unknown_type(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/upload",
            data={"type": "pet_avatar"},
            files={"file": ("me.jpg", JPEG, "image/jpeg")},
            headers=auth_headers("ext-001"),
        )

        assert response.status_code == 400
        assert response.json()["code"] == 1001

    @pytest.mark.asyncio
    async def test_disallowed_extension(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/upload",
            data={"type": "user_avatar"},
            files={"file": ("script.svg", b"<svg/>", "image/svg+xml")},
            headers=auth_headers("ext-001"),
        )

        assert response.status_code == 400
        assert response.json()["code"] == 1001

    @pytest.mark.asyncio
    async def test_too_large(self, client: AsyncClient, auth_headers, upload_dir):
        before = sorted(Path(upload_dir).rglob("*"))

        with patch.object(settings, "upload_max_size", 64):
            response = await client.post(
                "/upload",
                data={"type": "user_avatar"},
                files={"file": ("me.jpg", JPEG, "image/jpeg")},
                headers=auth_headers("ext-001"),
            )

        assert response.status_code == 400
        assert response.json()["code"] == 1001
        assert sorted(Path(upload_dir).rglob("*")) == before

    @pytest.mark.asyncio
    async def test_missing_file(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/upload", data={"type": "user_avatar"}, headers=auth_headers("ext-001")
        )

        assert response.status_code == 400
        assert response.json()["code"] == 1001

    @pytest.mark.asyncio
    async def test_requires_token(self, client: AsyncClient):
        response = await client.post(
            "/upload",
            data={"type": "user_avatar"},
            files={"file": ("me.jpg", JPEG, "image/jpeg")},
        )

        assert response.status_code == 401
