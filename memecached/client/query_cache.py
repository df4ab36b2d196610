"""Keyed client-side query cache.

Entries are addressed by tuple keys and looked up by key prefix, so one
call can reach every entry of a query family (``("memes",)`` matches
``("memes", "cat", "")`` and ``("memes", "", "")``).

All reads and writes happen on the event loop thread; the only suspension
points are the fetchers themselves.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from memecached.core.logging import get_logger

logger = get_logger(__name__)

QueryKey = tuple[Any, ...]
Fetcher = Callable[[], Awaitable[Any]]


@dataclass
class QueryEntry:
    """State held for one cache key."""

    key: QueryKey
    data: Any = None
    fetcher: Optional[Fetcher] = None
    is_stale: bool = False
    updated_at: Optional[float] = None
    task: Optional[asyncio.Task] = None

    @property
    def is_fetching(self) -> bool:
        return self.task is not None and not self.task.done()


def _matches(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == prefix


class QueryCache:
    """Query cache with cancellable fetches and background refetch."""

    def __init__(self) -> None:
        self._entries: dict[QueryKey, QueryEntry] = {}
        self._background: set[asyncio.Task] = set()

    def _entry(self, key: QueryKey) -> QueryEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = QueryEntry(key=key)
            self._entries[key] = entry
        return entry

    async def fetch(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        refetch: Optional[Fetcher] = None,
    ) -> Any:
        """Run a fetcher and store its result under ``key``.

        ``refetch`` is remembered for background refetches after
        invalidation; it defaults to ``fetcher``.

        If the fetch is cancelled through :meth:`cancel`, nothing is written
        and the data already cached is returned.
        """
        entry = self._entry(key)
        entry.fetcher = refetch or fetcher

        task = asyncio.ensure_future(fetcher())
        entry.task = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if entry.task is task:
                entry.task = None

        if task.cancelled():
            logger.debug("query_fetch_cancelled", key=key)
            return entry.data

        data = task.result()
        entry.data = data
        entry.is_stale = False
        entry.updated_at = time.monotonic()
        return data

    def get_entry(self, key: QueryKey) -> Optional[QueryEntry]:
        return self._entries.get(key)

    def get_data(self, key: QueryKey) -> Any:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def set_data(self, key: QueryKey, data: Any) -> None:
        """Overwrite the data of one entry, creating it if needed."""
        entry = self._entry(key)
        entry.data = data
        entry.updated_at = time.monotonic()

    def get_entries(self, prefix: QueryKey) -> list[tuple[QueryKey, Any]]:
        """Return ``(key, data)`` for every entry under ``prefix`` holding data."""
        return [
            (key, entry.data)
            for key, entry in self._entries.items()
            if _matches(key, prefix) and entry.data is not None
        ]

    async def cancel(self, prefix: QueryKey) -> None:
        """Cancel in-flight fetches under ``prefix`` and wait until they stop."""
        tasks = [
            entry.task
            for key, entry in self._entries.items()
            if _matches(key, prefix) and entry.is_fetching
        ]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.debug("queries_cancelled", prefix=prefix, count=len(tasks))

    def invalidate(self, prefix: QueryKey) -> None:
        """Mark entries under ``prefix`` stale and refetch them in the background."""
        count = 0
        for key, entry in list(self._entries.items()):
            if not _matches(key, prefix):
                continue
            entry.is_stale = True
            count += 1
            if entry.fetcher is not None:
                task = asyncio.create_task(self._refresh(key, entry.fetcher))
                self._background.add(task)
                task.add_done_callback(self._background.discard)
        logger.debug("queries_invalidated", prefix=prefix, count=count)

    async def _refresh(self, key: QueryKey, fetcher: Fetcher) -> None:
        try:
            await self.fetch(key, fetcher)
        except Exception as e:
            # The entry stays stale; the next read or invalidation retries
            logger.warning("query_refetch_failed", key=key, error=str(e))

    async def wait_idle(self) -> None:
        """Wait for every background refetch scheduled so far."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
