"""Liveness and version endpoints; these answer outside the response envelope."""

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends

from .. import __version__
from ..config import settings
from ..models import HealthResponse, VersionResponse
from ..storage import Database, get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

_started_at = time.monotonic()


def _format_uptime(seconds_total: float) -> str:
    days, remainder = divmod(int(seconds_total), 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"Days: {days}, Hours: {hours}, Minutes: {minutes}, Seconds: {seconds}"


async def _database_reachable(db: Database) -> bool:
    try:
        return await asyncio.wait_for(db.ping(), settings.external_call_timeout_seconds)
    except Exception as e:
        logger.error(f"Database health check failed: {e!r}")
        return False


def _upload_dir_writable() -> bool:
    path = Path(settings.upload_storage_path)
    return path.is_dir() and os.access(path, os.W_OK)


@router.get("/health", response_model=HealthResponse)
async def health_check(db: Database = Depends(get_db)) -> HealthResponse:
    """Check the database and the upload directory.

    Always 200; ``status`` is "degraded" when either check fails.
    """
    db_connected = await _database_reachable(db)
    storage_writable = _upload_dir_writable()
    if not storage_writable:
        logger.warning(f"Upload directory is not writable: {settings.upload_storage_path}")

    return HealthResponse(
        status="healthy" if db_connected and storage_writable else "degraded",
        version=__version__,
        uptime=_format_uptime(time.monotonic() - _started_at),
        database_connected=db_connected,
        storage_writable=storage_writable,
    )


@router.get("/version", response_model=VersionResponse)
async def get_version() -> VersionResponse:
    return VersionResponse(service_version=__version__)


@router.get("/")
async def root() -> dict[str, Any]:
    """Service name, version and where to look next."""
    return {
        "service": "Polaris API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {"auth": "/auth", "upload": "/upload", "admin": "/admin"},
    }
