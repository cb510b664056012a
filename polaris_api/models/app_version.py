"""App version data models."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from .base import CamelModel

DEFAULT_APP_NAME = "宝宝喂养时刻"


class AppVersion(BaseModel):
    """Persisted app version record."""

    id: int
    version: str
    name: str = DEFAULT_APP_NAME
    description: str = ""
    min_version: str = ""
    is_active: bool = False
    force_update: bool = False
    release_notes: str = ""
    build_time: datetime = Field(default_factory=lambda: datetime.now(UTC))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class AppVersionInfo(CamelModel):
    """Version information advertised to clients for update gating."""

    version: str
    name: str
    description: str = ""
    min_version: str = ""
    force_update: bool = False
    release_notes: str = ""
    build_time: int = Field(..., description="Build time in epoch milliseconds")

    @classmethod
    def from_record(cls, record: AppVersion) -> "AppVersionInfo":
        return cls(
            version=record.version,
            name=record.name,
            description=record.description,
            min_version=record.min_version,
            force_update=record.force_update,
            release_notes=record.release_notes,
            build_time=int(record.build_time.timestamp() * 1000),
        )


class AppVersionAdminInfo(AppVersionInfo):
    """Version information including activation state (admin surface)."""

    is_active: bool = False

    @classmethod
    def from_record(cls, record: AppVersion) -> "AppVersionAdminInfo":
        info = AppVersionInfo.from_record(record)
        return cls(**info.model_dump(), is_active=record.is_active)


class AppVersionCreate(CamelModel):
    """Request to create a new app version."""

    version: str = Field(..., max_length=20, examples=["2.1.0"])
    name: str = Field(default=DEFAULT_APP_NAME, max_length=100)
    description: str = ""
    min_version: str = Field(default="", max_length=20)
    is_active: bool = False
    force_update: bool = False
    release_notes: str = ""


class SetActiveVersionRequest(CamelModel):
    version: str = Field(..., min_length=1)
