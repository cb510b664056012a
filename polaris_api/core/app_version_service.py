"""Mini-program version gate."""

import logging

from ..errors import NotFoundError, ValidationError
from ..models import AppVersionAdminInfo, AppVersionCreate, AppVersionInfo
from ..storage import AppVersionStore
from ..telemetry import TelemetryEvents, track_event
from .guard import call_store

logger = logging.getLogger(__name__)


class AppVersionService:
    """Publishes the currently active client version and manages releases.

    Every store call is bounded by ``timeout`` seconds (None waits forever)
    and fails with UpstreamTimeoutError when it runs out.
    """

    def __init__(self, store: AppVersionStore, timeout: float | None = None):
        self.store = store
        self.timeout = timeout

    async def _call(self, awaitable, action: str):
        return await call_store(awaitable, action, self.timeout)

    async def get_current_version(self) -> AppVersionInfo:
        record = await self._call(self.store.find_active_app_version(), "load active version")
        if record is None:
            raise NotFoundError("no active app version")
        return AppVersionInfo.from_record(record)

    async def get_version(self, version: str) -> AppVersionAdminInfo:
        record = await self._call(self.store.find_app_version(version), "load app version")
        if record is None:
            raise NotFoundError(f"app version '{version}' not found")
        return AppVersionAdminInfo.from_record(record)

    async def list_versions(self) -> list[AppVersionAdminInfo]:
        records = await self._call(self.store.list_app_versions(), "list app versions")
        return [AppVersionAdminInfo.from_record(r) for r in records]

    async def create_version(self, request: AppVersionCreate) -> AppVersionAdminInfo:
        """Register a release; with ``is_active`` it replaces the active one."""
        version = request.version.strip()
        if not version:
            raise ValidationError("version must not be blank")
        request = request.model_copy(update={"version": version})

        record = await self._call(self.store.create_app_version(request), "create app version")

        logger.info(f"App version created: {version} (active={record.is_active})")
        track_event(
            TelemetryEvents.APP_VERSION_CREATED, {"version": version, "is_active": record.is_active}
        )
        return AppVersionAdminInfo.from_record(record)

    async def set_active(self, version: str) -> AppVersionAdminInfo:
        """Make ``version`` the only active version.

        Unknown versions are rejected before anything changes, so a failed
        call leaves the previous active version in place.
        """
        existing = await self._call(self.store.find_app_version(version), "load app version")
        if existing is None:
            raise NotFoundError(f"app version '{version}' not found")

        activated = await self._call(
            self.store.set_active_app_version(version), "activate app version"
        )
        if not activated:
            raise NotFoundError(f"app version '{version}' not found")

        logger.info(f"App version activated: {version}")
        track_event(TelemetryEvents.APP_VERSION_ACTIVATED, {"version": version})
        return await self.get_version(version)
