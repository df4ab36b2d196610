"""Presigned image upload endpoint.

The client PUTs the image bytes straight to object storage, then creates the
meme with the returned ``image_url``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from memecached.api.deps import Principal, get_current_user, get_storage
from memecached.core.config import settings
from memecached.core.logging import get_logger
from memecached.schemas.upload import UploadUrlResponse
from memecached.services.exceptions import UpstreamError
from memecached.services.storage import ObjectStorage, build_public_url

logger = get_logger(__name__)

router = APIRouter(prefix="/upload-url", tags=["upload"])


@router.get("", response_model=UploadUrlResponse)
async def get_upload_url(
    filename: Optional[str] = Query(None, description="Name of the file to upload"),
    user: Principal = Depends(get_current_user),
    storage: ObjectStorage = Depends(get_storage),
) -> UploadUrlResponse:
    """Get a presigned URL for uploading one image."""
    if not filename:
        raise HTTPException(status_code=400, detail="Missing filename query parameter")

    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if extension not in settings.allowed_extensions:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Allowed: {', '.join(settings.allowed_extensions)}",
        )

    try:
        upload = await storage.presign(user.id, extension)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=e.message) from e

    logger.info("upload_url_issued", owner_id=user.id, key=upload.key)

    return UploadUrlResponse(
        upload_url=upload.upload_url,
        key=upload.key,
        image_url=build_public_url(upload.key),
    )
