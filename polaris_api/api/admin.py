"""Administrative endpoints (admin API key required)."""

import logging

from fastapi import APIRouter, Depends

from ..core import AppVersionService
from ..models import (
    ApiResponse,
    AppVersionAdminInfo,
    AppVersionCreate,
    QRCodeRequest,
    QRCodeResponse,
    SetActiveVersionRequest,
    ok,
)
from ..wechat import WechatService
from .deps import get_app_version_service, get_wechat_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/app-versions", response_model=ApiResponse[list[AppVersionAdminInfo]])
async def list_app_versions(
    service: AppVersionService = Depends(get_app_version_service),
) -> ApiResponse[list[AppVersionAdminInfo]]:
    """List all app versions, newest first."""
    return ok(await service.list_versions())


@router.post(
    "/app-versions",
    response_model=ApiResponse[AppVersionAdminInfo],
    summary="Register an app version",
    description="""
Create a release record. With ``isActive: true`` the new version replaces
the currently active one in the same transaction.
""",
)
async def create_app_version(
    request: AppVersionCreate,
    service: AppVersionService = Depends(get_app_version_service),
) -> ApiResponse[AppVersionAdminInfo]:
    return ok(await service.create_version(request))


@router.put("/app-versions/active", response_model=ApiResponse[AppVersionAdminInfo])
async def set_active_app_version(
    request: SetActiveVersionRequest,
    service: AppVersionService = Depends(get_app_version_service),
) -> ApiResponse[AppVersionAdminInfo]:
    """Make one version the only active version."""
    return ok(await service.set_active(request.version))


@router.get("/app-versions/{version}", response_model=ApiResponse[AppVersionAdminInfo])
async def get_app_version(
    version: str,
    service: AppVersionService = Depends(get_app_version_service),
) -> ApiResponse[AppVersionAdminInfo]:
    return ok(await service.get_version(version))


@router.post("/qrcodes", response_model=ApiResponse[QRCodeResponse])
async def generate_qrcode(
    request: QRCodeRequest,
    service: WechatService = Depends(get_wechat_service),
) -> ApiResponse[QRCodeResponse]:
    """Generate a mini-program code for a scene and page."""
    url = await service.generate_qrcode(request.scene, request.page)
    return ok(QRCodeResponse(url=url))
