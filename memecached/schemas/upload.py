"""Pydantic schemas for image upload URLs."""

from __future__ import annotations

from pydantic import BaseModel, Field


class UploadUrlResponse(BaseModel):
    """Presigned upload target for a new meme image."""

    upload_url: str = Field(..., description="Presigned PUT URL")
    key: str = Field(..., description="Object key inside the bucket")
    image_url: str = Field(..., description="Public URL to store on the meme")
