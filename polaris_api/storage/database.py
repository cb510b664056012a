"""Database management with PostgreSQL via asyncpg."""

import logging
import time
from typing import Any

import asyncpg

from ..config import settings
from ..errors import ConflictError
from ..models import AppVersion, AppVersionCreate, User

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def _user_from_row(row: asyncpg.Record) -> User:
    return User(
        id=row["id"],
        openid=row["openid"],
        nick_name=row["nick_name"],
        avatar_url=row["avatar_url"],
        last_login_time=row["last_login_time"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _app_version_from_row(row: asyncpg.Record) -> AppVersion:
    return AppVersion(**dict(row))


class Database:
    """Async PostgreSQL database manager using asyncpg.

    Implements both :class:`~polaris_api.storage.base.UserStore` and
    :class:`~polaris_api.storage.base.AppVersionStore`.
    """

    def __init__(self, db_url: str):
        """Initialize database with connection URL."""
        self.db_url = db_url
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Establish database connection pool and initialize schema."""
        if self._pool is not None:
            return

        self._pool = await asyncpg.create_pool(
            self.db_url,
            min_size=settings.database_pool_min_size,
            max_size=settings.database_pool_max_size,
            command_timeout=settings.database_command_timeout,
        )

        from .schema import INIT_SCHEMA

        async with self._pool.acquire() as conn:
            await conn.execute(INIT_SCHEMA)

        logger.info(f"Database connected: {self.db_url.split('@')[-1]}")  # Don't log password

    async def disconnect(self) -> None:
        """Close database connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database disconnected")

    def _require_pool(self) -> asyncpg.Pool:
        if not self._pool:
            raise RuntimeError("Database not connected")
        return self._pool

    async def ping(self) -> bool:
        """Run a trivial query to check connectivity."""
        pool = self._require_pool()
        async with pool.acquire() as conn:
            return await conn.fetchval("SELECT 1") == 1

    # User operations
    async def find_user_by_openid(self, openid: str) -> User | None:
        """Get user by WeChat openid."""
        pool = self._require_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM users WHERE openid = $1", openid)

        return _user_from_row(row) if row else None

    async def create_user(
        self, openid: str, nick_name: str, avatar_url: str, last_login_time: int
    ) -> User:
        """Create a new user."""
        pool = self._require_pool()
        now = now_ms()

        try:
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO users (
                        openid, nick_name, avatar_url, last_login_time, created_at, updated_at
                    )
                    VALUES ($1, $2, $3, $4, $5, $5)
                    RETURNING *
                    """,
                    openid,
                    nick_name,
                    avatar_url,
                    last_login_time,
                    now,
                )
        except asyncpg.UniqueViolationError as e:
            raise ConflictError("user already exists") from e

        logger.debug(f"Created user: id={row['id']}")
        return _user_from_row(row)

    async def update_user(
        self,
        openid: str,
        nick_name: str,
        avatar_url: str,
        last_login_time: int | None = None,
    ) -> User | None:
        """Update mutable user fields."""
        pool = self._require_pool()

        updates = ["nick_name = $1", "avatar_url = $2", "updated_at = $3"]
        params: list[Any] = [nick_name, avatar_url, now_ms()]
        param_idx = 4

        if last_login_time is not None:
            updates.append(f"last_login_time = ${param_idx}")
            params.append(last_login_time)
            param_idx += 1

        params.append(openid)

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"UPDATE users SET {', '.join(updates)} WHERE openid = ${param_idx} RETURNING *",
                *params,
            )

        if row is None:
            return None

        logger.debug(f"Updated user: id={row['id']}")
        return _user_from_row(row)

    # App version operations
    async def find_active_app_version(self) -> AppVersion | None:
        """Get the active app version, newest first if several are flagged."""
        pool = self._require_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT * FROM app_versions
                WHERE is_active = true
                ORDER BY created_at DESC
                LIMIT 1
                """
            )

        return _app_version_from_row(row) if row else None

    async def find_app_version(self, version: str) -> AppVersion | None:
        """Get app version by version string."""
        pool = self._require_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM app_versions WHERE version = $1", version)

        return _app_version_from_row(row) if row else None

    async def list_app_versions(self) -> list[AppVersion]:
        """List all app versions, newest first."""
        pool = self._require_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch("SELECT * FROM app_versions ORDER BY created_at DESC")

        return [_app_version_from_row(row) for row in rows]

    async def create_app_version(self, request: AppVersionCreate) -> AppVersion:
        """Create an app version, activating it atomically when requested."""
        pool = self._require_pool()

        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    if request.is_active:
                        await conn.execute(
                            "LOCK TABLE app_versions IN SHARE ROW EXCLUSIVE MODE"
                        )
                        await conn.execute(
                            "UPDATE app_versions SET is_active = false WHERE is_active"
                        )

                    row = await conn.fetchrow(
                        """
                        INSERT INTO app_versions (
                            version, name, description, min_version,
                            is_active, force_update, release_notes
                        )
                        VALUES ($1, $2, $3, $4, $5, $6, $7)
                        RETURNING *
                        """,
                        request.version,
                        request.name,
                        request.description,
                        request.min_version,
                        request.is_active,
                        request.force_update,
                        request.release_notes,
                    )
        except asyncpg.UniqueViolationError as e:
            raise ConflictError(f"app version '{request.version}' already exists") from e

        logger.debug(f"Created app version: {request.version}")
        return _app_version_from_row(row)

    async def set_active_app_version(self, version: str) -> bool:
        """Deactivate all versions and activate one, in a single transaction."""
        pool = self._require_pool()

        async with pool.acquire() as conn:
            async with conn.transaction():
                # Serialize concurrent activations; readers are not blocked
                await conn.execute("LOCK TABLE app_versions IN SHARE ROW EXCLUSIVE MODE")

                exists = await conn.fetchval(
                    "SELECT 1 FROM app_versions WHERE version = $1", version
                )
                if not exists:
                    return False

                await conn.execute("UPDATE app_versions SET is_active = false WHERE is_active")
                await conn.execute(
                    "UPDATE app_versions SET is_active = true WHERE version = $1", version
                )

        logger.debug(f"Activated app version: {version}")
        return True


# Global database instance
_db: Database | None = None


async def init_database() -> Database:
    """Initialize and return global database instance."""
    global _db
    if _db is None:
        db_url = settings.get_database_url()
        _db = Database(db_url)
        await _db.connect()

    return _db


async def get_db() -> Database:
    """Get database instance (dependency injection).

    Auto-initializes if not already initialized.
    """
    global _db
    if _db is None:
        _db = await init_database()
    return _db


async def close_database() -> None:
    """Disconnect and forget the global database instance."""
    global _db
    if _db is not None:
        await _db.disconnect()
        _db = None
