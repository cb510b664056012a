"""Pytest configuration and fixtures."""

import os
import tempfile
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import bcrypt

ADMIN_KEY = "admin-test-key"
JWT_SECRET = "test-secret"

# Set test environment variables BEFORE importing anything that loads settings
os.environ["JWT_SECRET"] = JWT_SECRET
os.environ["BASE_URL"] = "https://api.test"
os.environ["WECHAT_APP_ID"] = "wx-test-app"
os.environ["WECHAT_APP_SECRET"] = "wx-test-secret"
os.environ["UPLOAD_STORAGE_PATH"] = tempfile.mkdtemp(prefix="polaris-uploads-")
os.environ["ADMIN_API_KEY_HASH"] = bcrypt.hashpw(
    ADMIN_KEY.encode(), bcrypt.gensalt(rounds=4)
).decode()
os.environ["TELEMETRY_ENABLED"] = "false"

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from polaris_api.config import settings  # noqa: E402
from polaris_api.core import LocalFileStore, SessionTokenIssuer  # noqa: E402
from polaris_api.errors import ConflictError  # noqa: E402
from polaris_api.models import AppVersion, AppVersionCreate, User  # noqa: E402
from polaris_api.storage import now_ms  # noqa: E402
from polaris_api.telemetry import clear_dev_logs  # noqa: E402
from polaris_api.wechat import WechatClient  # noqa: E402

# wx.login codes the fake WeChat API accepts, mapped to the openid they resolve to
WECHAT_CODES = {
    "abc123": "ext-001",
    "def456": "ext-002",
}

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class InMemoryUserStore:
    """UserStore backed by a dict keyed by openid.

    Like the database, it stamps created_at and updated_at from its own
    clock rather than from the caller.
    """

    def __init__(self, clock: Callable[[], int] = now_ms):
        self.users: dict[str, User] = {}
        self._next_id = 1
        self.clock = clock
        self.fail_with: Exception | None = None

    def _check_failure(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def find_user_by_openid(self, openid: str) -> User | None:
        self._check_failure()
        return self.users.get(openid)

    async def create_user(
        self, openid: str, nick_name: str, avatar_url: str, last_login_time: int
    ) -> User:
        self._check_failure()
        if openid in self.users:
            raise ConflictError("user already exists")

        now = self.clock()
        user = User(
            id=self._next_id,
            openid=openid,
            nick_name=nick_name,
            avatar_url=avatar_url,
            last_login_time=last_login_time,
            created_at=now,
            updated_at=now,
        )
        self._next_id += 1
        self.users[openid] = user
        return user

    async def update_user(
        self,
        openid: str,
        nick_name: str,
        avatar_url: str,
        last_login_time: int | None = None,
    ) -> User | None:
        self._check_failure()
        user = self.users.get(openid)
        if user is None:
            return None

        updates = {"nick_name": nick_name, "avatar_url": avatar_url, "updated_at": self.clock()}
        if last_login_time is not None:
            updates["last_login_time"] = last_login_time
        user = user.model_copy(update=updates)
        self.users[openid] = user
        return user


class InMemoryAppVersionStore:
    """AppVersionStore backed by a dict keyed by version string."""

    def __init__(self):
        self.versions: dict[str, AppVersion] = {}
        self._next_id = 1
        self._epoch = datetime(2025, 1, 1, tzinfo=UTC)
        self.fail_with: Exception | None = None

    def _check_failure(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _newest_first(self) -> list[AppVersion]:
        return sorted(self.versions.values(), key=lambda v: v.created_at, reverse=True)

    async def find_active_app_version(self) -> AppVersion | None:
        self._check_failure()
        return next((v for v in self._newest_first() if v.is_active), None)

    async def find_app_version(self, version: str) -> AppVersion | None:
        self._check_failure()
        return self.versions.get(version)

    async def list_app_versions(self) -> list[AppVersion]:
        self._check_failure()
        return self._newest_first()

    async def create_app_version(self, request: AppVersionCreate) -> AppVersion:
        self._check_failure()
        if request.version in self.versions:
            raise ConflictError(f"app version '{request.version}' already exists")

        if request.is_active:
            for record in self.versions.values():
                record.is_active = False

        created_at = self._epoch + timedelta(minutes=self._next_id)
        record = AppVersion(
            id=self._next_id,
            build_time=created_at,
            created_at=created_at,
            updated_at=created_at,
            **request.model_dump(),
        )
        self._next_id += 1
        self.versions[record.version] = record
        return record

    async def set_active_app_version(self, version: str) -> bool:
        self._check_failure()
        if version not in self.versions:
            return False
        for record in self.versions.values():
            record.is_active = record.version == version
        return True

    def active_versions(self) -> list[str]:
        return [v.version for v in self.versions.values() if v.is_active]


class FakeDatabase:
    """Stands in for the asyncpg Database on the health endpoint."""

    def __init__(self, connected: bool = True):
        self.connected = connected

    async def ping(self) -> bool:
        return self.connected


class FakeWechatAPI:
    """Request handler for ``httpx.MockTransport`` emulating the WeChat API."""

    def __init__(self):
        self.calls: list[httpx.Request] = []
        self.qrcode_response: httpx.Response | None = None
        self.subscribe_response: httpx.Response | None = None

    def paths(self) -> list[str]:
        return [request.url.path for request in self.calls]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path

        if path == "/sns/jscode2session":
            code = request.url.params.get("js_code")
            if code in WECHAT_CODES:
                return httpx.Response(
                    200, json={"openid": WECHAT_CODES[code], "session_key": "session-key"}
                )
            return httpx.Response(200, json={"errcode": 40029, "errmsg": "invalid code"})

        if path == "/cgi-bin/token":
            return httpx.Response(200, json={"access_token": "access-token-1", "expires_in": 7200})

        if path == "/wxa/getwxacodeunlimit":
            return self.qrcode_response or httpx.Response(
                200, content=PNG_BYTES, headers={"content-type": "image/png"}
            )

        if path == "/cgi-bin/message/subscribe/send":
            return self.subscribe_response or httpx.Response(
                200, json={"errcode": 0, "errmsg": "ok"}
            )

        return httpx.Response(404, json={"errcode": -1, "errmsg": "not found"})


@pytest.fixture(autouse=True)
def _reset_dev_logs():
    clear_dev_logs()
    yield
    clear_dev_logs()


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def version_store() -> InMemoryAppVersionStore:
    return InMemoryAppVersionStore()


@pytest.fixture
def token_issuer() -> SessionTokenIssuer:
    return SessionTokenIssuer(JWT_SECRET, expire_hours=72)


@pytest.fixture
def wechat_api() -> FakeWechatAPI:
    return FakeWechatAPI()


@pytest_asyncio.fixture
async def wechat_client(wechat_api: FakeWechatAPI):
    client = WechatClient(
        "wx-test-app",
        "wx-test-secret",
        api_base="https://api.weixin.test",
        transport=httpx.MockTransport(wechat_api),
    )
    yield client
    await client.aclose()


@pytest.fixture
def upload_dir():
    return settings.upload_storage_path


@pytest_asyncio.fixture
async def test_app(user_store, version_store, token_issuer, wechat_client, upload_dir):
    """The application with in-memory stores and a fake WeChat API."""
    from polaris_api.api.deps import get_app_version_store, get_user_store
    from polaris_api.main import app
    from polaris_api.storage import get_db

    app.state.token_issuer = token_issuer
    app.state.wechat_client = wechat_client
    app.state.file_store = LocalFileStore(upload_dir)

    async def override_get_db():
        return FakeDatabase()

    async def override_user_store():
        return user_store

    async def override_version_store():
        return version_store

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_user_store] = override_user_store
    app.dependency_overrides[get_app_version_store] = override_version_store

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(test_app):
    """Create test client against the application."""
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers(token_issuer):
    """Build a bearer Authorization header for an openid."""

    def _headers(openid: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_issuer.issue(openid)}"}

    return _headers


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {settings.admin_api_key_header: ADMIN_KEY}
