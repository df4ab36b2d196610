"""Async HTTP client for the memecached API."""

from __future__ import annotations

from typing import Any

import httpx

from memecached.core.logging import get_logger
from memecached.schemas.meme import (
    DashboardResponse,
    MemeListResponse,
    MemeOut,
    SortField,
    SortOrder,
)
from memecached.schemas.tag import TagListResponse
from memecached.schemas.upload import UploadUrlResponse

logger = get_logger(__name__)


class ApiError(Exception):
    """Raised when the API answers with a non-success status."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class ApiRedirectError(ApiError):
    """Raised when the API answers with a ``{"redirect": ...}`` body.

    The caller should navigate to ``destination`` and stop what it was doing.
    """

    def __init__(self, status_code: int, destination: str):
        self.destination = destination
        super().__init__(status_code, f"redirect:{destination}")


class MemeCachedClient:
    """Client for the catalog endpoints under ``/api/v1``."""

    def __init__(
        self,
        base_url: str,
        user_id: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        """Initialize the client.

        Args:
            base_url: Server root, e.g. ``http://localhost:8000``.
            user_id: Account ID sent as ``X-User-Id``.
            transport: Optional httpx transport (tests, ASGI in-process).
            timeout: Request timeout in seconds.
        """
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/api/v1",
            headers={"Accept": "application/json", "X-User-Id": user_id},
            transport=transport,
            timeout=timeout,
        )
        # Storage uploads go to presigned URLs without API headers
        self._uploader = httpx.AsyncClient(transport=transport, timeout=timeout)

    async def close(self) -> None:
        """Close the HTTP clients."""
        await self._client.aclose()
        await self._uploader.aclose()

    async def __aenter__(self) -> MemeCachedClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send a request and decode the JSON answer.

        Returns:
            Decoded JSON, or None for 204 No Content.

        Raises:
            ApiRedirectError: If the server asks the client to navigate away.
            ApiError: For any other non-success status.
        """
        response = await self._client.request(method, url, **kwargs)

        if response.status_code == 204:
            return None

        data: Any = None
        if "application/json" in response.headers.get("content-type", ""):
            try:
                data = response.json()
            except ValueError:
                data = None

        if isinstance(data, dict) and isinstance(data.get("redirect"), str):
            raise ApiRedirectError(response.status_code, data["redirect"])

        if response.is_error:
            detail = data.get("detail") if isinstance(data, dict) else None
            logger.debug(
                "api_request_failed",
                method=method,
                url=url,
                status_code=response.status_code,
            )
            raise ApiError(response.status_code, str(detail or response.reason_phrase))

        return data

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_feed(
        self,
        cursor: str | None = None,
        limit: int | None = None,
        q: str = "",
        tag: str = "",
    ) -> MemeListResponse:
        """Fetch one page of the cursor feed."""
        params: dict[str, Any] = {}
        if cursor:
            params["cursor"] = cursor
        if limit is not None:
            params["limit"] = limit
        if q:
            params["q"] = q
        if tag:
            params["tag"] = tag
        data = await self._request("GET", "/memes", params=params)
        return MemeListResponse.model_validate(data)

    async def list_dashboard(
        self,
        page: int = 1,
        page_size: int | None = None,
        q: str = "",
        tag: str = "",
        sort_by: SortField = SortField.CREATED_AT,
        sort_order: SortOrder = SortOrder.DESC,
    ) -> DashboardResponse:
        """Fetch one dashboard page."""
        params: dict[str, Any] = {
            "page": page,
            "sort_by": sort_by.value,
            "sort_order": sort_order.value,
        }
        if page_size is not None:
            params["page_size"] = page_size
        if q:
            params["q"] = q
        if tag:
            params["tag"] = tag
        data = await self._request("GET", "/memes/dashboard", params=params)
        return DashboardResponse.model_validate(data)

    async def list_tags(self) -> TagListResponse:
        """Fetch every tag."""
        data = await self._request("GET", "/tags")
        return TagListResponse.model_validate(data)

    # =========================================================================
    # Writes
    # =========================================================================

    async def get_upload_url(self, filename: str) -> UploadUrlResponse:
        """Ask the server for a presigned image upload target."""
        data = await self._request("GET", "/upload-url", params={"filename": filename})
        return UploadUrlResponse.model_validate(data)

    async def upload_image(
        self,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> str:
        """Upload image bytes to storage and return the public image URL."""
        target = await self.get_upload_url(filename)

        headers = {"Content-Type": content_type} if content_type else {}
        response = await self._uploader.put(target.upload_url, content=content, headers=headers)
        if response.is_error:
            raise ApiError(response.status_code, "Image upload failed")

        logger.debug("image_uploaded", key=target.key, size=len(content))
        return target.image_url

    async def create_meme(
        self,
        image_url: str,
        description: str,
        tags: list[str],
        image_width: int | None = None,
        image_height: int | None = None,
    ) -> MemeOut:
        """Create a meme."""
        body: dict[str, Any] = {
            "image_url": image_url,
            "description": description,
            "tags": tags,
        }
        if image_width is not None:
            body["image_width"] = image_width
        if image_height is not None:
            body["image_height"] = image_height
        data = await self._request("POST", "/memes", json=body)
        return MemeOut.model_validate(data)

    async def update_meme(
        self,
        meme_id: str,
        description: str | None = None,
        tags: list[str] | None = None,
    ) -> MemeOut:
        """Update a meme; fields left as None are not sent."""
        body: dict[str, Any] = {}
        if description is not None:
            body["description"] = description
        if tags is not None:
            body["tags"] = tags
        data = await self._request("PATCH", f"/memes/{meme_id}", json=body)
        return MemeOut.model_validate(data)

    async def delete_meme(self, meme_id: str) -> None:
        """Delete a meme."""
        await self._request("DELETE", f"/memes/{meme_id}")

    async def bulk_delete(self, ids: list[str]) -> None:
        """Delete several memes, all or nothing."""
        await self._request("POST", "/memes/bulk-delete", json={"ids": ids})

    async def bulk_tag(self, ids: list[str], tags: list[str]) -> None:
        """Add tags to several memes."""
        await self._request("POST", "/memes/bulk-tag", json={"ids": ids, "tags": tags})
