"""Local filesystem storage for uploaded and generated files."""

import asyncio
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class FileStore(Protocol):
    """Byte storage addressed by a directory relative to the store root."""

    async def save(self, directory: str, filename: str, content: bytes) -> None: ...


class LocalFileStore:
    """Writes files below ``root``, creating directories as needed."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def resolve(self, directory: str, filename: str) -> Path:
        """Absolute target path; refuses anything that escapes the root."""
        root = self.root.resolve()
        target = (root / directory / filename).resolve()
        if not target.is_relative_to(root):
            raise ValueError(f"path escapes storage root: {directory}/{filename}")
        return target

    async def save(self, directory: str, filename: str, content: bytes) -> None:
        target = self.resolve(directory, filename)
        await asyncio.to_thread(self._write, target, content)
        logger.debug(f"Stored {len(content)} bytes at {target}")

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
