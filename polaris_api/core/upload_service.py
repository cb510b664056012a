"""Validation, naming and storage of uploaded images."""

import logging
import re
import secrets
from collections.abc import Callable
from datetime import datetime

from ..errors import ValidationError
from ..models import UploadResult, UploadType
from ..telemetry import TelemetryEvents, track_event
from .file_store import FileStore
from .guard import call_store

logger = logging.getLogger(__name__)

MIME_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}

UPLOAD_SUBDIRS = {
    UploadType.USER_AVATAR: "users",
    UploadType.BABY_AVATAR: "babies",
}

UPLOAD_URL_PREFIX = "/uploads"
IMAGE_DIR = "images"

_RELATED_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class UploadService:
    """Accepts avatar images and stores them under a generated name.

    A rejected upload never reaches the file store. Writes are bounded by
    ``timeout`` seconds like every other collaborator call.
    """

    def __init__(
        self,
        store: FileStore,
        allowed_types: list[str],
        max_size: int,
        base_url: str,
        random_suffix: bool = False,
        timeout: float | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.timeout = timeout
        self.max_size = max_size
        self.base_url = base_url.rstrip("/")
        self.random_suffix = random_suffix
        self._clock = clock

        extensions: list[str] = []
        for mime in allowed_types:
            ext = MIME_EXTENSIONS.get(mime.lower())
            if ext and ext not in extensions:
                extensions.append(ext)
        self.allowed_extensions = extensions

    def validate(self, filename: str, size: int, upload_type: str) -> UploadType:
        """Check an upload before any bytes are stored.

        Raises:
            ValidationError: unknown type, disallowed extension, empty or
                oversized file
        """
        try:
            kind = UploadType(upload_type)
        except ValueError:
            raise ValidationError(f"unsupported upload type: {upload_type!r}") from None

        ext = _extension(filename)
        if ext not in self.allowed_extensions:
            raise ValidationError(
                f"file type not allowed: {ext or '(none)'}; "
                f"allowed: {', '.join(self.allowed_extensions)}"
            )

        if size <= 0:
            raise ValidationError("file is empty")
        if size > self.max_size:
            raise ValidationError(f"file too large: max {self.max_size // (1024 * 1024)}MB")

        return kind

    def generate_filename(self, filename: str, kind: UploadType, related_id: str = "") -> str:
        """``{type}[_{related_id}]_{YYYYmmdd_HHMMSS}[_{hex}]{ext}``"""
        parts = [kind.value]
        if related_id:
            parts.append(related_id)
        parts.append(self._clock().strftime("%Y%m%d_%H%M%S"))
        if self.random_suffix:
            parts.append(secrets.token_hex(4))
        return "_".join(parts) + _extension(filename)

    async def upload(
        self,
        filename: str,
        content: bytes,
        upload_type: str,
        related_id: str = "",
    ) -> UploadResult:
        """Validate and store an image, returning where it can be fetched."""
        try:
            kind = self.validate(filename, len(content), upload_type)
            if related_id and not _RELATED_ID_PATTERN.match(related_id):
                raise ValidationError("related_id may only contain letters, digits, '-' and '_'")
        except ValidationError as e:
            track_event(TelemetryEvents.UPLOAD_REJECTED, {"reason": e.message})
            raise

        stored_name = self.generate_filename(filename, kind, related_id)
        directory = f"{IMAGE_DIR}/{UPLOAD_SUBDIRS[kind]}"

        await call_store(
            self.store.save(directory, stored_name, content), "save file", self.timeout
        )

        path = f"{UPLOAD_URL_PREFIX}/{directory}/{stored_name}"
        logger.info(f"Upload stored: {path} ({len(content)} bytes)")
        track_event(
            TelemetryEvents.UPLOAD_COMPLETED, {"upload_type": kind.value, "size": len(content)}
        )

        return UploadResult(
            url=f"{self.base_url}{path}",
            path=path,
            filename=stored_name,
            size=len(content),
        )


def _extension(filename: str) -> str:
    _, dot, ext = filename.rpartition(".")
    if not dot or not ext:
        return ""
    return f".{ext.lower()}"
