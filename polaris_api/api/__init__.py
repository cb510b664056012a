"""API endpoints for the Polaris service."""

from .admin import router as admin_router
from .auth import router as auth_router
from .health import router as health_router
from .upload import router as upload_router

__all__ = [
    "auth_router",
    "upload_router",
    "admin_router",
    "health_router",
]
