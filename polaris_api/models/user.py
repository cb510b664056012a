"""User data models."""

from pydantic import BaseModel, Field

from .base import CamelModel


class User(BaseModel):
    """Persisted user record.

    ``openid`` is the WeChat external identity and the login lookup key.
    Timestamps are epoch milliseconds.
    """

    id: int
    openid: str
    nick_name: str = ""
    avatar_url: str = ""
    last_login_time: int = 0
    created_at: int = 0
    updated_at: int = 0


class UserInfo(CamelModel):
    """Public user profile returned to the client."""

    openid: str
    nick_name: str = ""
    avatar_url: str = ""
    create_time: int = 0
    last_login_time: int = 0

    @classmethod
    def from_user(cls, user: User) -> "UserInfo":
        return cls(
            openid=user.openid,
            nick_name=user.nick_name,
            avatar_url=user.avatar_url,
            create_time=user.created_at,
            last_login_time=user.last_login_time,
        )


class WechatLoginRequest(CamelModel):
    """Request body for ``POST /auth/wechat-login``."""

    code: str = Field(..., min_length=1, description="Code returned by wx.login")
    nick_name: str = Field(default="", max_length=64)
    avatar_url: str = Field(default="", max_length=512)


class LoginResponse(CamelModel):
    token: str
    user_info: UserInfo
    is_new_user: bool = Field(
        ..., description="True on the first login of this identity (client shows onboarding)"
    )


class RefreshTokenResponse(CamelModel):
    token: str
    expires_in: int = Field(..., description="Token lifetime in seconds")


class UpdateUserInfoRequest(CamelModel):
    """Request body for ``PUT /auth/user-info``; both fields are overwritten."""

    nick_name: str = Field(..., min_length=1, max_length=64)
    avatar_url: str = Field(default="", max_length=512)
