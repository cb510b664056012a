"""Typed WeChat open-API payloads."""

from typing import Any

from pydantic import BaseModel, Field


class WechatResult(BaseModel):
    """Common ``errcode``/``errmsg`` pair carried by every WeChat response."""

    errcode: int = 0
    errmsg: str = ""

    @property
    def ok(self) -> bool:
        return self.errcode == 0


class Code2SessionResult(WechatResult):
    """Response of ``sns/jscode2session``."""

    openid: str = ""
    session_key: str = ""
    unionid: str = ""


class AccessTokenResult(WechatResult):
    """Response of ``cgi-bin/token``."""

    access_token: str = ""
    expires_in: int = 0


class SubscribeDataItem(BaseModel):
    value: Any


class SubscribeMessage(BaseModel):
    """Body of ``cgi-bin/message/subscribe/send``."""

    touser: str
    template_id: str
    page: str = ""
    miniprogram_state: str = Field(default="formal", description="developer, trial or formal")
    lang: str = "zh_CN"
    data: dict[str, SubscribeDataItem] = Field(default_factory=dict)

    @classmethod
    def build(
        cls,
        openid: str,
        template_id: str,
        values: dict[str, Any],
        page: str = "",
        miniprogram_state: str = "formal",
    ) -> "SubscribeMessage":
        """Build a message from plain ``{key: value}`` template data."""
        return cls(
            touser=openid,
            template_id=template_id,
            page=page,
            miniprogram_state=miniprogram_state,
            data={key: SubscribeDataItem(value=value) for key, value in values.items()},
        )
