"""Telemetry settings, read from ``TELEMETRY_*`` environment variables."""

from pydantic_settings import BaseSettings


class TelemetryConfig(BaseSettings):
    """Where events go, what identifies them and which requests are tracked."""

    app_insights_connection_string: str | None = None
    enabled: bool = True

    app_id: str = "polaris-api"
    environment: str = "development"

    # Static files and API docs are served without request events
    skip_path_prefixes: str = "/uploads/,/docs,/redoc,/openapi.json"
    # Requests at or above this duration are logged and flagged as slow
    slow_request_ms: float = 2000.0

    enable_dev_logger: bool = True
    dev_logger_max_events: int = 1000

    model_config = {
        "env_prefix": "TELEMETRY_",
        "env_file": ".env",
        "extra": "ignore",
    }

    def get_skip_path_prefixes(self) -> list[str]:
        return [p.strip() for p in self.skip_path_prefixes.split(",") if p.strip()]


_config: TelemetryConfig | None = None


def get_telemetry_config() -> TelemetryConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = TelemetryConfig()
    return _config
