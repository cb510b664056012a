"""
Request telemetry.

Every response carries an ``X-Request-ID`` (the caller's, or a generated
one). Requests outside the skip prefixes also produce ``request_received``
and ``request_completed`` events; the completion event names the caller's
openid and, for rejected requests, the business error code from the
envelope. Requests that escape as exceptions produce ``request_failed``.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .config import get_telemetry_config
from .context import clear_request_context, generate_correlation_id, set_request_context
from .events import TelemetryEvents
from .tracker import track_event, track_exception

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def record_error_code(request: Request, code: int) -> None:
    """Remember the envelope error code for the request's completion event."""
    request.state.error_code = code


def _caller(request: Request) -> str:
    return getattr(request.state, "openid", None) or "anonymous"


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class TelemetryMiddleware(BaseHTTPMiddleware):
    """Correlation ids and request lifecycle events."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        config = get_telemetry_config()
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_correlation_id()
        request.state.request_id = request_id
        set_request_context(request_id=request_id)

        path = request.url.path
        tracked = not any(path.startswith(p) for p in config.get_skip_path_prefixes())
        base = {"endpoint": path, "method": request.method}
        start = time.perf_counter()

        try:
            if tracked:
                track_event(TelemetryEvents.REQUEST_RECEIVED, base)

            response = await call_next(request)

            if tracked:
                self._track_completed(request, response, base, start, config.slow_request_ms)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        except Exception as e:
            properties = {**base, "openid": _caller(request), "duration_ms": _elapsed_ms(start)}
            track_exception(e, properties)
            track_event(
                TelemetryEvents.REQUEST_FAILED, {**properties, "error_type": type(e).__name__}
            )
            raise

        finally:
            clear_request_context()

    def _track_completed(
        self,
        request: Request,
        response: Response,
        base: dict[str, Any],
        start: float,
        slow_request_ms: float,
    ) -> None:
        duration_ms = _elapsed_ms(start)
        properties = {
            **base,
            "openid": _caller(request),
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        }

        error_code = getattr(request.state, "error_code", None)
        if error_code is not None:
            properties["error_code"] = error_code

        if duration_ms >= slow_request_ms:
            properties["slow"] = True
            logger.warning(f"Slow request: {request.method} {base['endpoint']} {duration_ms:.0f}ms")

        track_event(TelemetryEvents.REQUEST_COMPLETED, properties)
