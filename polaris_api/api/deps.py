"""FastAPI dependencies wiring services to their collaborators."""

from fastapi import Depends, Request

from ..config import settings
from ..core import (
    AppVersionService,
    AuthService,
    FileStore,
    SessionTokenIssuer,
    UploadService,
)
from ..errors import AuthenticationError
from ..storage import AppVersionStore, Database, UserStore, get_db
from ..wechat import WechatClient, WechatService


def get_token_issuer(request: Request) -> SessionTokenIssuer:
    return request.app.state.token_issuer


def get_wechat_client(request: Request) -> WechatClient:
    return request.app.state.wechat_client


def get_file_store(request: Request) -> FileStore:
    return request.app.state.file_store


async def get_user_store(db: Database = Depends(get_db)) -> UserStore:
    return db


async def get_app_version_store(db: Database = Depends(get_db)) -> AppVersionStore:
    return db


def get_current_openid(request: Request) -> str:
    """Openid set by AuthMiddleware for bearer-authenticated requests."""
    openid = getattr(request.state, "openid", None)
    if not openid:
        raise AuthenticationError()
    return openid


def get_auth_service(
    users: UserStore = Depends(get_user_store),
    identity: WechatClient = Depends(get_wechat_client),
    issuer: SessionTokenIssuer = Depends(get_token_issuer),
) -> AuthService:
    return AuthService(
        users=users,
        identity=identity,
        issuer=issuer,
        timeout=settings.external_call_timeout_seconds,
    )


def get_upload_service(store: FileStore = Depends(get_file_store)) -> UploadService:
    return UploadService(
        store=store,
        allowed_types=settings.get_allowed_upload_types(),
        max_size=settings.upload_max_size,
        base_url=settings.base_url,
        random_suffix=settings.upload_random_suffix,
        timeout=settings.external_call_timeout_seconds,
    )


def get_app_version_service(
    store: AppVersionStore = Depends(get_app_version_store),
) -> AppVersionService:
    return AppVersionService(store, timeout=settings.external_call_timeout_seconds)


def get_wechat_service(
    client: WechatClient = Depends(get_wechat_client),
    store: FileStore = Depends(get_file_store),
) -> WechatService:
    return WechatService(
        client, store, settings.base_url, timeout=settings.external_call_timeout_seconds
    )
