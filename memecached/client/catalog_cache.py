"""Cache handle for the three catalog query families.

Mutations receive a :class:`CatalogCache` explicitly and reach the feed,
dashboard and tag-list entries only through it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel

from memecached.client.api import MemeCachedClient
from memecached.client.query_cache import QueryCache, QueryKey
from memecached.core.logging import get_logger
from memecached.schemas.meme import (
    DashboardResponse,
    MemeListResponse,
    SortField,
    SortOrder,
)
from memecached.schemas.tag import TagListResponse

logger = get_logger(__name__)

FEED: QueryKey = ("memes",)
PAGE: QueryKey = ("dashboard-memes",)
TAGS_KEY: QueryKey = ("tags",)


def feed_key(q: str = "", tag: str = "") -> QueryKey:
    return (*FEED, q, tag)


def page_key(
    q: str = "",
    tag: str = "",
    sort_by: SortField = SortField.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
    page: int = 1,
) -> QueryKey:
    return (*PAGE, q, tag, sort_by.value, sort_order.value, page)


class FeedData(BaseModel):
    """Loaded pages of one feed entry, with the cursor each page was fetched at."""

    pages: list[MemeListResponse]
    page_params: list[Optional[str]]

    @property
    def next_cursor(self) -> Optional[str]:
        return self.pages[-1].next_cursor if self.pages else None

    @property
    def has_next_page(self) -> bool:
        return self.next_cursor is not None


@dataclass
class CacheSnapshot:
    """Feed and page entries captured before an optimistic edit."""

    feed_entries: list[tuple[QueryKey, Any]] = field(default_factory=list)
    page_entries: list[tuple[QueryKey, Any]] = field(default_factory=list)


class CatalogCache:
    """Typed access to the feed, page and tag-list caches."""

    def __init__(self, client: MemeCachedClient, cache: Optional[QueryCache] = None):
        self.client = client
        self.cache = cache or QueryCache()

    # =========================================================================
    # Loaders
    # =========================================================================

    async def load_feed(
        self, q: str = "", tag: str = "", limit: Optional[int] = None
    ) -> FeedData:
        """Load the first page of a feed entry."""
        key = feed_key(q, tag)

        async def first_page() -> FeedData:
            page = await self.client.list_feed(limit=limit, q=q, tag=tag)
            return FeedData(pages=[page], page_params=[None])

        return await self.cache.fetch(
            key, first_page, refetch=self._feed_refetcher(key, q, tag, limit)
        )

    async def load_more(
        self, q: str = "", tag: str = "", limit: Optional[int] = None
    ) -> FeedData:
        """Append the next page to a feed entry.

        Loads the first page when the entry is empty; returns the entry
        unchanged when the feed is exhausted.
        """
        key = feed_key(q, tag)
        current: Optional[FeedData] = self.cache.get_data(key)
        if current is None:
            return await self.load_feed(q, tag, limit)
        cursor = current.next_cursor
        if cursor is None:
            return current

        async def next_page() -> FeedData:
            page = await self.client.list_feed(cursor=cursor, limit=limit, q=q, tag=tag)
            base: FeedData = self.cache.get_data(key) or current
            return FeedData(
                pages=[*base.pages, page],
                page_params=[*base.page_params, cursor],
            )

        return await self.cache.fetch(
            key, next_page, refetch=self._feed_refetcher(key, q, tag, limit)
        )

    def _feed_refetcher(self, key: QueryKey, q: str, tag: str, limit: Optional[int]):
        async def refetch() -> FeedData:
            # Reload as many pages as are loaded now, following fresh cursors
            loaded: Optional[FeedData] = self.cache.get_data(key)
            count = len(loaded.pages) if loaded else 1
            pages: list[MemeListResponse] = []
            params: list[Optional[str]] = []
            cursor: Optional[str] = None
            for _ in range(count):
                page = await self.client.list_feed(cursor=cursor, limit=limit, q=q, tag=tag)
                pages.append(page)
                params.append(cursor)
                cursor = page.next_cursor
                if cursor is None:
                    break
            return FeedData(pages=pages, page_params=params)

        return refetch

    async def load_page(
        self,
        q: str = "",
        tag: str = "",
        sort_by: SortField = SortField.CREATED_AT,
        sort_order: SortOrder = SortOrder.DESC,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> DashboardResponse:
        """Load one dashboard page."""

        async def fetch_page() -> DashboardResponse:
            return await self.client.list_dashboard(
                page=page,
                page_size=page_size,
                q=q,
                tag=tag,
                sort_by=sort_by,
                sort_order=sort_order,
            )

        return await self.cache.fetch(page_key(q, tag, sort_by, sort_order, page), fetch_page)

    async def load_tags(self) -> TagListResponse:
        return await self.cache.fetch(TAGS_KEY, self.client.list_tags)

    # =========================================================================
    # Reconciliation steps
    # =========================================================================

    async def cancel_and_snapshot(self) -> CacheSnapshot:
        """Stop in-flight feed and page fetches, then capture their entries."""
        await self.cache.cancel(PAGE)
        await self.cache.cancel(FEED)
        return CacheSnapshot(
            feed_entries=self.cache.get_entries(FEED),
            page_entries=self.cache.get_entries(PAGE),
        )

    def apply(self, snapshot: CacheSnapshot, update_feed, update_page) -> None:
        """Write transformed copies of every snapshotted entry back to the cache."""
        for key, data in snapshot.feed_entries:
            self.cache.set_data(key, update_feed(data))
        for key, data in snapshot.page_entries:
            self.cache.set_data(key, update_page(data))

    def rollback(self, snapshot: CacheSnapshot) -> None:
        """Restore every snapshotted entry to its captured value."""
        for key, data in [*snapshot.feed_entries, *snapshot.page_entries]:
            self.cache.set_data(key, data)
        logger.info(
            "cache_rolled_back",
            feed_entries=len(snapshot.feed_entries),
            page_entries=len(snapshot.page_entries),
        )

    def invalidate_all(self) -> None:
        """Mark the page, feed and tag-list families stale and refetch them."""
        self.cache.invalidate(PAGE)
        self.cache.invalidate(FEED)
        self.cache.invalidate(TAGS_KEY)
