"""Application configuration using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service settings
    service_host: str = Field(default="0.0.0.0", description="Host to bind the service")
    service_port: int = Field(default=8080, description="Port to bind the service")
    service_workers: int = Field(default=4, description="Number of worker processes")
    log_level: str = Field(default="info", description="Logging level")
    base_url: str = Field(
        default="http://localhost:8080",
        description="Public base URL used to build links to uploaded files",
    )

    # Database - PostgreSQL connection
    database_url: str | None = Field(
        default=None,
        description="Full database connection URL (overrides individual fields)",
    )
    database_user: str = Field(default="postgres", description="Database username")
    database_password: str = Field(default="", description="Database password")
    database_host: str = Field(default="localhost", description="Database host")
    database_port: int = Field(default=5432, description="Database port")
    database_name: str = Field(default="nutri_baby", description="Database name")
    database_pool_min_size: int = Field(
        default=2,
        description="Minimum database connection pool size",
    )
    database_pool_max_size: int = Field(
        default=20,
        description="Maximum database connection pool size",
    )
    database_ssl_mode: str = Field(
        default="disable",
        description="SSL mode: disable, prefer, require",
    )
    database_command_timeout: float = Field(
        default=30.0,
        description="Per-statement timeout in seconds",
    )

    # Session tokens
    jwt_secret: str = Field(
        default="development-secret-key-change-in-production",
        description="Symmetric secret used to sign session tokens",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expire_hours: int = Field(default=72, description="Session token lifetime in hours")

    # WeChat mini-program
    wechat_app_id: str = Field(default="", description="Mini-program AppID")
    wechat_app_secret: str = Field(default="", description="Mini-program AppSecret")
    wechat_api_base: str = Field(
        default="https://api.weixin.qq.com",
        description="Base URL of the WeChat open API",
    )
    wechat_timeout_seconds: float = Field(
        default=5.0, description="Timeout for calls to the WeChat API"
    )

    # Upload
    upload_max_size: int = Field(
        default=10 * 1024 * 1024, description="Maximum upload size in bytes"
    )
    upload_allowed_types: str = Field(
        default="image/jpeg,image/png,image/gif",
        description="Allowed upload MIME types (comma-separated)",
    )
    upload_storage_path: str = Field(
        default="uploads", description="Directory where uploaded files are stored"
    )
    upload_random_suffix: bool = Field(
        default=False,
        description="Append a random token to generated upload filenames",
    )

    # Collaborator calls made by the auth flow
    external_call_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout applied to identity exchange, store and file store calls",
    )

    # CORS
    allowed_origins: str = Field(
        default="*",
        description="Allowed CORS origins (comma-separated)",
    )

    # Administrative surface
    admin_api_key_hash: str | None = Field(
        default=None,
        description="Bcrypt hash of the admin API key (admin routes disabled when unset)",
    )
    admin_api_key_header: str = Field(
        default="X-Admin-Key", description="Header name for the admin API key"
    )

    def get_allowed_origins(self) -> list[str]:
        """Get allowed origins as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def get_allowed_upload_types(self) -> list[str]:
        """Get allowed upload MIME types as a list."""
        return [
            mime.strip().lower() for mime in self.upload_allowed_types.split(",") if mime.strip()
        ]

    def get_database_url(self) -> str:
        """
        Get PostgreSQL connection URL.

        If database_url is set, use it directly.
        Otherwise, construct from individual components.
        """
        from urllib.parse import quote_plus

        if self.database_url:
            return self.database_url

        # URL-encode username and password to handle special characters
        user = quote_plus(self.database_user)
        password = quote_plus(self.database_password)

        ssl_param = ""
        if self.database_ssl_mode in ("require", "prefer"):
            ssl_param = f"?sslmode={self.database_ssl_mode}"

        return (
            f"postgresql://{user}:{password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}{ssl_param}"
        )


# Global settings instance
settings = Settings()
