"""Storage layer for users and app versions."""

from .base import AppVersionStore, UserStore
from .database import Database, close_database, get_db, init_database, now_ms

__all__ = [
    "Database",
    "UserStore",
    "AppVersionStore",
    "get_db",
    "init_database",
    "close_database",
    "now_ms",
]
