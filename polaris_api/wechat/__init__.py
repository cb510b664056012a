"""WeChat mini-program integration."""

from .client import WechatAPIError, WechatClient
from .models import Code2SessionResult, SubscribeMessage
from .service import WechatService

__all__ = [
    "WechatClient",
    "WechatAPIError",
    "WechatService",
    "Code2SessionResult",
    "SubscribeMessage",
]
