"""
Telemetry for the Polaris service.

Events are buffered in memory for development and, when a connection
string is configured, forwarded to Application Insights.
"""

from .config import TelemetryConfig, get_telemetry_config
from .context import (
    bind_openid,
    clear_request_context,
    generate_correlation_id,
    get_request_context,
    set_request_context,
)
from .dev_logger import clear_dev_logs, get_dev_logs, log_dev_event
from .events import TelemetryEvents
from .middleware import REQUEST_ID_HEADER, TelemetryMiddleware, record_error_code
from .tracker import flush_telemetry, initialize_telemetry, track_event, track_exception

__all__ = [
    "REQUEST_ID_HEADER",
    "TelemetryConfig",
    "TelemetryEvents",
    "TelemetryMiddleware",
    "bind_openid",
    "clear_dev_logs",
    "clear_request_context",
    "flush_telemetry",
    "generate_correlation_id",
    "get_dev_logs",
    "get_request_context",
    "get_telemetry_config",
    "initialize_telemetry",
    "log_dev_event",
    "record_error_code",
    "set_request_context",
    "track_event",
    "track_exception",
]
