"""Login, session and profile endpoints."""

import logging

from fastapi import APIRouter, Depends

from ..core import AppVersionService, AuthService
from ..models import (
    ApiResponse,
    AppVersionInfo,
    LoginResponse,
    RefreshTokenResponse,
    UpdateUserInfoRequest,
    UserInfo,
    WechatLoginRequest,
    ok,
)
from .deps import get_app_version_service, get_auth_service, get_current_openid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/wechat-login",
    response_model=ApiResponse[LoginResponse],
    summary="Log in with a wx.login code",
    description="""
Exchange a one-time ``wx.login`` code for a session token.

The user is created on first login; later logins refresh the nickname,
avatar and last login time. ``isNewUser`` tells the two apart.
""",
)
async def wechat_login(
    request: WechatLoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse[LoginResponse]:
    result = await service.login(request.code, request.nick_name, request.avatar_url)
    return ok(result)


@router.get("/app-version", response_model=ApiResponse[AppVersionInfo])
async def get_app_version(
    service: AppVersionService = Depends(get_app_version_service),
) -> ApiResponse[AppVersionInfo]:
    """Currently active client version."""
    return ok(await service.get_current_version())


@router.post("/refresh-token", response_model=ApiResponse[RefreshTokenResponse])
async def refresh_token(
    openid: str = Depends(get_current_openid),
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse[RefreshTokenResponse]:
    """Issue a new token for the caller's session."""
    return ok(await service.refresh_token(openid))


@router.get("/user-info", response_model=ApiResponse[UserInfo])
async def get_user_info(
    openid: str = Depends(get_current_openid),
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse[UserInfo]:
    return ok(await service.get_user_info(openid))


@router.put("/user-info", response_model=ApiResponse[UserInfo])
async def update_user_info(
    request: UpdateUserInfoRequest,
    openid: str = Depends(get_current_openid),
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse[UserInfo]:
    return ok(await service.update_profile(openid, request.nick_name, request.avatar_url))
