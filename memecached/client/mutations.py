"""Catalog mutations with optimistic cache updates.

Update, delete and bulk-tag follow the same sequence: cancel in-flight
feed and page fetches, snapshot them, apply the expected change, call the
API, restore the snapshot on failure, and invalidate every family once the
call settles.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, TypeVar

from memecached.client import optimistic
from memecached.client.api import MemeCachedClient
from memecached.client.catalog_cache import CatalogCache
from memecached.core.logging import get_logger
from memecached.schemas.meme import MemeOut

logger = get_logger(__name__)

T = TypeVar("T")


class CatalogMutations:
    """Mutations that keep a :class:`CatalogCache` in step with the server."""

    def __init__(self, client: MemeCachedClient, cache: CatalogCache):
        self.client = client
        self.cache = cache

    async def _run(
        self,
        action: str,
        update_feed: Callable,
        update_page: Callable,
        call: Callable[[], Awaitable[T]],
    ) -> T:
        snapshot = await self.cache.cancel_and_snapshot()
        self.cache.apply(snapshot, update_feed, update_page)
        try:
            return await call()
        except Exception as e:
            self.cache.rollback(snapshot)
            logger.warning("mutation_failed", action=action, error=str(e))
            raise
        finally:
            self.cache.invalidate_all()

    async def update_meme(
        self,
        meme_id: str,
        description: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> MemeOut:
        """Update a meme's description and/or tags."""
        return await self._run(
            "update",
            lambda data: optimistic.update_in_feed(data, meme_id, description, tags),
            lambda data: optimistic.update_in_page(data, meme_id, description, tags),
            lambda: self.client.update_meme(meme_id, description=description, tags=tags),
        )

    async def delete_memes(self, ids: list[str]) -> None:
        """Delete one meme, or several in one all-or-nothing request."""
        if not ids:
            return

        async def call() -> None:
            if len(ids) == 1:
                await self.client.delete_meme(ids[0])
            else:
                await self.client.bulk_delete(ids)

        await self._run(
            "delete",
            lambda data: optimistic.remove_from_feed(data, ids),
            lambda data: optimistic.remove_from_page(data, ids),
            call,
        )
        logger.info("memes_deleted", count=len(ids))

    async def bulk_tag(self, ids: list[str], tags: list[str]) -> None:
        """Add tags to several memes."""
        await self._run(
            "bulk_tag",
            lambda data: optimistic.merge_tags_in_feed(data, ids, tags),
            lambda data: optimistic.merge_tags_in_page(data, ids, tags),
            lambda: self.client.bulk_tag(ids, tags),
        )

    async def create_meme(
        self,
        filename: str,
        content: bytes,
        description: str,
        tags: list[str],
        content_type: Optional[str] = None,
        image_width: Optional[int] = None,
        image_height: Optional[int] = None,
    ) -> MemeOut:
        """Upload an image and create a meme for it.

        Nothing is applied optimistically; the caches are invalidated once
        the request settles.
        """
        try:
            image_url = await self.client.upload_image(filename, content, content_type)
            meme = await self.client.create_meme(
                image_url,
                description,
                tags,
                image_width=image_width,
                image_height=image_height,
            )
        finally:
            self.cache.invalidate_all()
        logger.info("meme_created", meme_id=meme.id)
        return meme
