"""Upload data models."""

from enum import Enum

from .base import CamelModel


class UploadType(str, Enum):
    """Recognized upload categories."""

    USER_AVATAR = "user_avatar"
    BABY_AVATAR = "baby_avatar"


class UploadResult(CamelModel):
    url: str
    path: str
    filename: str
    size: int
