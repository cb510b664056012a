"""Data models for the Polaris service."""

from .app_version import (
    AppVersion,
    AppVersionAdminInfo,
    AppVersionCreate,
    AppVersionInfo,
    SetActiveVersionRequest,
)
from .responses import (
    ApiResponse,
    ErrorResponse,
    HealthResponse,
    QRCodeRequest,
    QRCodeResponse,
    VersionResponse,
    ok,
)
from .upload import UploadResult, UploadType
from .user import (
    LoginResponse,
    RefreshTokenResponse,
    UpdateUserInfoRequest,
    User,
    UserInfo,
    WechatLoginRequest,
)

__all__ = [
    # User models
    "User",
    "UserInfo",
    "WechatLoginRequest",
    "LoginResponse",
    "RefreshTokenResponse",
    "UpdateUserInfoRequest",
    # App version models
    "AppVersion",
    "AppVersionInfo",
    "AppVersionAdminInfo",
    "AppVersionCreate",
    "SetActiveVersionRequest",
    # Upload models
    "UploadType",
    "UploadResult",
    # Responses
    "ApiResponse",
    "ErrorResponse",
    "HealthResponse",
    "VersionResponse",
    "QRCodeRequest",
    "QRCodeResponse",
    "ok",
]
