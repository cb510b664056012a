"""Mini-program codes and subscribe messages on top of the WeChat client."""

import asyncio
import logging
import re
from typing import TYPE_CHECKING

import httpx

from ..errors import ExternalServiceError, StorageError, UpstreamTimeoutError
from ..telemetry import TelemetryEvents, track_event
from .client import WechatAPIError, WechatClient
from .models import SubscribeMessage

if TYPE_CHECKING:
    from ..core.file_store import FileStore

logger = logging.getLogger(__name__)

QRCODE_DIR = "qrcodes"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.=-]")


class WechatService:
    """Classifies WeChat failures and persists generated QR codes."""

    def __init__(
        self,
        client: WechatClient,
        file_store: "FileStore",
        base_url: str,
        timeout: float | None = None,
    ):
        self.client = client
        self.file_store = file_store
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def _call(self, awaitable, action: str):
        try:
            return await asyncio.wait_for(awaitable, self.timeout)
        except (TimeoutError, httpx.TimeoutException) as e:
            track_event(TelemetryEvents.WECHAT_CALL_FAILED, {"action": action, "timeout": True})
            raise UpstreamTimeoutError(f"wechat {action} timed out") from e
        except WechatAPIError as e:
            logger.warning(f"WeChat {action} failed: {e}")
            track_event(
                TelemetryEvents.WECHAT_CALL_FAILED, {"action": action, "errcode": e.errcode}
            )
            raise ExternalServiceError(f"wechat {action} failed: {e.errmsg}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"WeChat {action} failed: {e}")
            track_event(TelemetryEvents.WECHAT_CALL_FAILED, {"action": action})
            raise ExternalServiceError(f"wechat {action} failed") from e

    async def generate_qrcode(self, scene: str, page: str) -> str:
        """Generate a mini-program code and return its public URL."""
        image = await self._call(self.client.get_unlimited_qrcode(scene, page), "qrcode")

        filename = f"qrcode_{_UNSAFE_FILENAME_CHARS.sub('_', scene)}.png"
        try:
            await asyncio.wait_for(self.file_store.save(QRCODE_DIR, filename, image), self.timeout)
        except TimeoutError as e:
            raise UpstreamTimeoutError("timed out while trying to save qrcode") from e
        except Exception as e:
            logger.error(f"Failed to store QR code {filename}: {e}", exc_info=True)
            raise StorageError("failed to save qrcode") from e

        logger.info(f"QR code generated for scene={scene}")
        track_event(TelemetryEvents.QRCODE_GENERATED, {"page": page})
        return f"{self.base_url}/uploads/{QRCODE_DIR}/{filename}"

    async def send_subscribe_message(
        self,
        openid: str,
        template_id: str,
        values: dict[str, str],
        page: str = "",
    ) -> None:
        """Send a subscribe message built from ``values`` to ``openid``."""
        message = SubscribeMessage.build(openid, template_id, values, page=page)
        await self._call(self.client.send_subscribe_message(message), "subscribe message")
        track_event(TelemetryEvents.SUBSCRIBE_MESSAGE_SENT, {"template_id": template_id})
