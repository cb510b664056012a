"""Async client for the WeChat mini-program open API."""

import asyncio
import logging
import time

import httpx

from ..errors import ValidationError
from .models import AccessTokenResult, Code2SessionResult, SubscribeMessage, WechatResult

logger = logging.getLogger(__name__)

# Refresh the cached access token this many seconds before WeChat expires it
ACCESS_TOKEN_REFRESH_MARGIN = 300

# errcodes meaning the access token we sent is no longer valid
INVALID_ACCESS_TOKEN_CODES = {40001, 40014, 42001}

MAX_SCENE_LENGTH = 32


class WechatAPIError(Exception):
    """WeChat answered with a non-zero ``errcode``."""

    def __init__(self, errcode: int, errmsg: str):
        self.errcode = errcode
        self.errmsg = errmsg
        super().__init__(f"wechat errcode={errcode}: {errmsg}")


class WechatClient:
    """Thin typed wrapper over the WeChat HTTP endpoints the service uses.

    Transport failures surface as ``httpx`` exceptions and provider errors as
    typed results (login) or :class:`WechatAPIError` (everything else); the
    calling service decides how to classify them.
    """

    def __init__(
        self,
        app_id: str,
        app_secret: str,
        api_base: str = "https://api.weixin.qq.com",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.app_id = app_id
        self._app_secret = app_secret
        self._http = httpx.AsyncClient(base_url=api_base, timeout=timeout, transport=transport)
        self._access_token: str | None = None
        self._access_token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def code_to_session(self, code: str) -> Code2SessionResult:
        """Exchange a ``wx.login`` code for the user's openid."""
        response = await self._http.get(
            "/sns/jscode2session",
            params={
                "appid": self.app_id,
                "secret": self._app_secret,
                "js_code": code,
                "grant_type": "authorization_code",
            },
        )
        response.raise_for_status()
        result = Code2SessionResult.model_validate(response.json())

        if not result.ok:
            logger.info(f"jscode2session rejected code: errcode={result.errcode}")
        return result

    async def get_access_token(self) -> str:
        """Return a cached client-credential access token, fetching when stale."""
        async with self._token_lock:
            if self._access_token and time.monotonic() < self._access_token_expires_at:
                return self._access_token

            response = await self._http.get(
                "/cgi-bin/token",
                params={
                    "grant_type": "client_credential",
                    "appid": self.app_id,
                    "secret": self._app_secret,
                },
            )
            response.raise_for_status()
            result = AccessTokenResult.model_validate(response.json())
            if not result.ok:
                raise WechatAPIError(result.errcode, result.errmsg)

            self._access_token = result.access_token
            self._access_token_expires_at = time.monotonic() + max(
                result.expires_in - ACCESS_TOKEN_REFRESH_MARGIN, 0
            )
            logger.debug(f"Fetched WeChat access token (expires_in={result.expires_in})")
            return self._access_token

    def invalidate_access_token(self) -> None:
        self._access_token = None
        self._access_token_expires_at = 0.0

    def _check(self, result: WechatResult) -> None:
        if result.ok:
            return
        if result.errcode in INVALID_ACCESS_TOKEN_CODES:
            self.invalidate_access_token()
        raise WechatAPIError(result.errcode, result.errmsg)

    async def send_subscribe_message(self, message: SubscribeMessage) -> None:
        """Send a subscribe (template) message to a user."""
        token = await self.get_access_token()
        response = await self._http.post(
            "/cgi-bin/message/subscribe/send",
            params={"access_token": token},
            json=message.model_dump(),
        )
        response.raise_for_status()
        self._check(WechatResult.model_validate(response.json()))

    async def get_unlimited_qrcode(self, scene: str, page: str, width: int = 280) -> bytes:
        """Generate a mini-program code image for ``page`` carrying ``scene``."""
        if not scene:
            raise ValidationError("scene must not be empty")
        if len(scene) > MAX_SCENE_LENGTH:
            raise ValidationError(
                f"scene must be at most {MAX_SCENE_LENGTH} characters, got {len(scene)}"
            )
        if not page:
            raise ValidationError("page must not be empty")

        token = await self.get_access_token()
        response = await self._http.post(
            "/wxa/getwxacodeunlimit",
            params={"access_token": token},
            json={"scene": scene, "page": page, "width": width},
        )
        response.raise_for_status()

        # Errors come back as JSON instead of image bytes
        content_type = response.headers.get("content-type", "")
        if "json" in content_type or response.content.startswith(b"{"):
            self._check(WechatResult.model_validate(response.json()))

        return response.content
