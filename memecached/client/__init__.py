"""Client for the memecached API with optimistic cache reconciliation."""

from memecached.client.api import ApiError, ApiRedirectError, MemeCachedClient
from memecached.client.catalog_cache import (
    FEED,
    PAGE,
    TAGS_KEY,
    CacheSnapshot,
    CatalogCache,
    FeedData,
    feed_key,
    page_key,
)
from memecached.client.mutations import CatalogMutations
from memecached.client.query_cache import QueryCache, QueryEntry

__all__ = [
    "ApiError",
    "ApiRedirectError",
    "CacheSnapshot",
    "CatalogCache",
    "CatalogMutations",
    "FEED",
    "FeedData",
    "MemeCachedClient",
    "PAGE",
    "QueryCache",
    "QueryEntry",
    "TAGS_KEY",
    "feed_key",
    "page_key",
]
