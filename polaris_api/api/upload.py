"""Image upload endpoint."""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..core import UploadService
from ..models import ApiResponse, UploadResult, ok
from .deps import get_current_openid, get_upload_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["upload"])


@router.post(
    "/upload",
    response_model=ApiResponse[UploadResult],
    summary="Upload an avatar image",
    description="""
Multipart upload of a user or baby avatar.

Form fields: ``type`` (``user_avatar`` or ``baby_avatar``), optional
``related_id`` and ``file``. Only the configured image types are accepted.
""",
)
async def upload_file(
    upload_type: str = Form(..., alias="type"),
    file: UploadFile = File(...),
    related_id: str = Form(""),
    openid: str = Depends(get_current_openid),
    service: UploadService = Depends(get_upload_service),
) -> ApiResponse[UploadResult]:
    filename = file.filename or ""

    # Reject on the declared size before reading the body
    if file.size is not None:
        service.validate(filename, file.size, upload_type)

    content = await file.read()
    result = await service.upload(filename, content, upload_type, related_id=related_id)
    return ok(result)
