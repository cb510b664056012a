"""Response envelopes and service-level responses."""

import time
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from ..errors import ErrorCode
from .base import CamelModel

T = TypeVar("T")


def _now() -> int:
    return int(time.time())


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope wrapping every business endpoint payload."""

    code: int = int(ErrorCode.SUCCESS)
    message: str = "success"
    data: T | None = None
    timestamp: int = Field(default_factory=_now)


class ErrorResponse(BaseModel):
    """Error envelope; ``code`` is one of :class:`ErrorCode`."""

    code: int
    message: str
    timestamp: int = Field(default_factory=_now)


def ok(data: T) -> ApiResponse[T]:
    """Wrap a payload in the success envelope."""
    return ApiResponse(data=data)


class QRCodeRequest(CamelModel):
    scene: str = Field(..., description="Scene value, at most 32 characters")
    page: str = Field(..., description="Mini-program page path")


class QRCodeResponse(CamelModel):
    url: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    uptime: str
    database_connected: bool
    storage_writable: bool


class VersionResponse(BaseModel):
    """Service version information."""

    service_version: str
    api_version: str = "v1"
