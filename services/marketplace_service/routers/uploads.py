"""Image upload endpoint backed by Cloudinary."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.errors import ExternalServiceError, ValidationFailed
from libs.common.logging import get_logger
from services.marketplace_service.cloudinary_client import (
    CloudinaryClient,
    CloudinaryError,
)
from services.marketplace_service.schemas import UploadResponse

logger = get_logger(__name__)
router = APIRouter(prefix="/uploads", tags=["uploads"])

MAX_IMAGE_BYTES = 5 * 1024 * 1024
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


@router.post("/image", response_model=UploadResponse)
async def upload_image(
    file: UploadFile = File(...),
    folder: Optional[str] = Form(None),
    current_user: AuthUser = Depends(get_current_user),
):
    """Upload a goods, brand or profile image and return its public URL."""
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationFailed("INVALID_IMAGE", "Only JPEG, PNG, GIF or WebP images")
    content = await file.read()
    if not content:
        raise ValidationFailed("INVALID_IMAGE", "Empty file")
    if len(content) > MAX_IMAGE_BYTES:
        raise ValidationFailed("IMAGE_TOO_LARGE", "Images are limited to 5 MB")

    try:
        uploaded = await CloudinaryClient().upload_image(
            content,
            file.filename or "upload",
            content_type=file.content_type,
            folder=folder or f"vendorvault/{current_user.role}",
        )
    except CloudinaryError as exc:
        raise ExternalServiceError("UPLOAD_FAILED", exc.message) from exc

    logger.info("User %s uploaded image %s", current_user.user_id, uploaded.public_id)
    return UploadResponse(url=uploaded.url)
