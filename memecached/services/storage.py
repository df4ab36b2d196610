"""Object storage for meme images.

Images live in an S3 bucket under ``<owner_id>/<file_id>.<ext>`` and are
served from a CDN at ``https://<cdn_domain>/<key>``. The catalog stores the
public URL and recovers the key from it when an image has to be deleted.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from memecached.core.config import settings
from memecached.core.logging import get_logger
from memecached.services.exceptions import UpstreamError

logger = get_logger(__name__)

# DeleteObjects accepts at most this many keys per call
MAX_KEYS_PER_DELETE = 1000


@dataclass(frozen=True)
class PresignedUpload:
    """A presigned PUT target and the key it writes to."""

    upload_url: str
    key: str


def build_object_key(owner_id: str, file_id: str, extension: str) -> str:
    """Build the object key for an uploaded image."""
    return f"{owner_id}/{file_id}.{extension}"


def build_public_url(key: str) -> str:
    """Build the public URL an object key is served from."""
    return f"https://{settings.cdn_domain}/{key}"


def extract_key_from_url(image_url: str) -> str:
    """Recover the object key from a public image URL.

    Inverse of :func:`build_public_url`. URLs on another host fall back to
    their path, so the key never carries a scheme or domain.
    """
    prefix = build_public_url("")
    if image_url.startswith(prefix):
        return image_url[len(prefix):]
    return urlsplit(image_url).path.lstrip("/")


class ObjectStorage:
    """S3-backed image storage.

    boto3 is blocking, so every call runs in a worker thread.
    """

    def __init__(
        self,
        bucket: str | None = None,
        region: str | None = None,
        client: Any | None = None,
    ):
        """Initialize the storage adapter.

        Args:
            bucket: Bucket name (defaults to settings).
            region: AWS region (defaults to settings).
            client: Preconfigured boto3 S3 client, mainly for tests.
        """
        self.bucket = bucket or settings.s3_bucket_name
        self._client = client or boto3.client("s3", region_name=region or settings.aws_region)

    async def presign(self, owner_id: str, extension: str) -> PresignedUpload:
        """Create a presigned PUT URL for a new image.

        Args:
            owner_id: The uploading user's ID (first key segment).
            extension: File extension without the dot.

        Returns:
            The upload URL and the key it will write.

        Raises:
            UpstreamError: If the URL could not be signed.
        """
        key = build_object_key(owner_id, str(uuid.uuid4()), extension)
        try:
            upload_url = await asyncio.to_thread(
                self._client.generate_presigned_url,
                "put_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=settings.presigned_url_expiry_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamError(f"Failed to presign upload: {e}") from e

        return PresignedUpload(upload_url=upload_url, key=key)

    async def delete(self, key: str) -> None:
        """Delete a single object.

        Raises:
            UpstreamError: If the delete call failed.
        """
        try:
            await asyncio.to_thread(
                self._client.delete_object,
                Bucket=self.bucket,
                Key=key,
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamError(f"Failed to delete object {key}: {e}") from e

        logger.debug("object_deleted", key=key)

    async def delete_many(self, keys: list[str]) -> None:
        """Delete several objects. Does nothing for an empty list.

        Raises:
            UpstreamError: If any batch failed or reported per-key errors.
        """
        if not keys:
            return

        failed: list[str] = []
        for start in range(0, len(keys), MAX_KEYS_PER_DELETE):
            batch = keys[start:start + MAX_KEYS_PER_DELETE]
            try:
                response = await asyncio.to_thread(
                    self._client.delete_objects,
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
            except (BotoCoreError, ClientError) as e:
                raise UpstreamError(f"Failed to delete {len(batch)} objects: {e}") from e

            failed.extend(error.get("Key", "?") for error in response.get("Errors", []))

        if failed:
            raise UpstreamError(f"Failed to delete objects: {', '.join(failed)}")

        logger.debug("objects_deleted", count=len(keys))
