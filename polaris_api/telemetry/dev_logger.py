"""
Development Logger

Keeps the most recent telemetry events in memory so they can be inspected
locally (and asserted on in tests) without Application Insights.
"""

from collections import deque
from datetime import UTC, datetime
from typing import Any

from .config import get_telemetry_config

_event_buffer: deque[dict[str, Any]] | None = None


def _buffer() -> deque[dict[str, Any]]:
    global _event_buffer
    if _event_buffer is None:
        _event_buffer = deque(maxlen=get_telemetry_config().dev_logger_max_events)
    return _event_buffer


def log_dev_event(event_name: str, properties: dict[str, Any]) -> None:
    """Record a telemetry event in the in-memory buffer."""
    if not get_telemetry_config().enable_dev_logger:
        return

    _buffer().append(
        {
            "timestamp": datetime.now(UTC).isoformat(),
            "event_name": event_name,
            "properties": properties,
        }
    )


def get_dev_logs(event_name: str | None = None) -> list[dict[str, Any]]:
    """Get buffered events, optionally only those with the given name."""
    events = list(_buffer())
    if event_name is not None:
        events = [event for event in events if event["event_name"] == event_name]
    return events


def clear_dev_logs() -> None:
    """Clear all buffered events."""
    _buffer().clear()
