"""Business logic for login, sessions, uploads and version gating."""

from .app_version_service import AppVersionService
from .auth_service import AuthService, IdentityExchange
from .file_store import FileStore, LocalFileStore
from .token_issuer import SessionTokenIssuer
from .upload_service import UploadService

__all__ = [
    "AuthService",
    "IdentityExchange",
    "SessionTokenIssuer",
    "UploadService",
    "AppVersionService",
    "FileStore",
    "LocalFileStore",
]
