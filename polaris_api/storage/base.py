"""Store interfaces consumed by the core services.

The services depend on these protocols rather than on :class:`Database`
directly so a store can be swapped (tests use in-memory implementations).
Implementations raise :class:`~polaris_api.errors.ConflictError` when a
uniqueness constraint is violated and let any other failure propagate raw;
the services classify it.
"""

from typing import Protocol

from ..models import AppVersion, AppVersionCreate, User


class UserStore(Protocol):
    """Persistence of :class:`User` records keyed by openid."""

    async def find_user_by_openid(self, openid: str) -> User | None: ...

    async def create_user(
        self, openid: str, nick_name: str, avatar_url: str, last_login_time: int
    ) -> User:
        """Insert a user; raises ConflictError if the openid already exists."""
        ...

    async def update_user(
        self,
        openid: str,
        nick_name: str,
        avatar_url: str,
        last_login_time: int | None = None,
    ) -> User | None:
        """Overwrite mutable fields; returns None when the user does not exist."""
        ...


class AppVersionStore(Protocol):
    """Persistence of :class:`AppVersion` records."""

    async def find_active_app_version(self) -> AppVersion | None: ...

    async def find_app_version(self, version: str) -> AppVersion | None: ...

    async def list_app_versions(self) -> list[AppVersion]: ...

    async def create_app_version(self, request: AppVersionCreate) -> AppVersion:
        """Insert a version; raises ConflictError if the version string exists."""
        ...

    async def set_active_app_version(self, version: str) -> bool:
        """Atomically make ``version`` the only active one.

        Returns False, changing nothing, when the version does not exist.
        """
        ...
