"""Tests for the keyed query cache."""

from __future__ import annotations

import asyncio

import pytest

from memecached.client.query_cache import QueryCache


def counting_fetcher(values):
    """Fetcher returning successive ``values``; records the call count."""
    calls = {"count": 0}

    async def fetch():
        value = values[min(calls["count"], len(values) - 1)]
        calls["count"] += 1
        if isinstance(value, Exception):
            raise value
        return value

    return fetch, calls


@pytest.mark.asyncio
async def test_fetch_stores_result():
    cache = QueryCache()
    fetch, _ = counting_fetcher(["first"])

    assert await cache.fetch(("memes", "", ""), fetch) == "first"
    assert cache.get_data(("memes", "", "")) == "first"
    assert cache.get_data(("memes", "x", "")) is None


@pytest.mark.asyncio
async def test_fetch_error_propagates_and_keeps_data():
    cache = QueryCache()
    key = ("tags",)
    fetch, _ = counting_fetcher(["ok", ValueError("boom")])
    await cache.fetch(key, fetch)

    with pytest.raises(ValueError):
        await cache.fetch(key, fetch)

    assert cache.get_data(key) == "ok"


@pytest.mark.asyncio
async def test_get_entries_matches_prefix():
    cache = QueryCache()
    cache.set_data(("memes", "", ""), 1)
    cache.set_data(("memes", "cat", ""), 2)
    cache.set_data(("dashboard-memes", "", "", "created_at", "desc", 1), 3)

    entries = dict(cache.get_entries(("memes",)))

    assert entries == {("memes", "", ""): 1, ("memes", "cat", ""): 2}


@pytest.mark.asyncio
async def test_cancel_prevents_stale_overwrite():
    cache = QueryCache()
    key = ("memes", "", "")
    cache.set_data(key, "before")
    release = asyncio.Event()

    async def slow():
        await release.wait()
        return "stale"

    pending = asyncio.create_task(cache.fetch(key, slow))
    await asyncio.sleep(0)
    assert cache.get_entry(key).is_fetching

    await cache.cancel(("memes",))
    cache.set_data(key, "optimistic")
    release.set()
    await pending

    assert cache.get_data(key) == "optimistic"
    assert not cache.get_entry(key).is_fetching


@pytest.mark.asyncio
async def test_cancel_leaves_other_families_running():
    cache = QueryCache()
    release = asyncio.Event()

    async def slow():
        await release.wait()
        return ["tag"]

    pending = asyncio.create_task(cache.fetch(("tags",), slow))
    await asyncio.sleep(0)

    await cache.cancel(("memes",))
    release.set()

    assert await pending == ["tag"]
    assert cache.get_data(("tags",)) == ["tag"]


@pytest.mark.asyncio
async def test_invalidate_marks_stale_and_refetches():
    cache = QueryCache()
    key = ("memes", "", "")
    fetch, calls = counting_fetcher(["v1", "v2"])
    await cache.fetch(key, fetch)

    cache.invalidate(("memes",))
    assert cache.get_entry(key).is_stale

    await cache.wait_idle()

    assert calls["count"] == 2
    assert cache.get_data(key) == "v2"
    assert not cache.get_entry(key).is_stale


@pytest.mark.asyncio
async def test_invalidate_only_touches_prefix():
    cache = QueryCache()
    memes, meme_calls = counting_fetcher(["m"])
    tags, tag_calls = counting_fetcher(["t"])
    await cache.fetch(("memes", "", ""), memes)
    await cache.fetch(("tags",), tags)

    cache.invalidate(("tags",))
    await cache.wait_idle()

    assert tag_calls["count"] == 2
    assert meme_calls["count"] == 1
    assert not cache.get_entry(("memes", "", "")).is_stale


@pytest.mark.asyncio
async def test_failed_refetch_keeps_entry_stale():
    cache = QueryCache()
    key = ("tags",)
    fetch, _ = counting_fetcher(["ok", RuntimeError("down")])
    await cache.fetch(key, fetch)

    cache.invalidate(key)
    await cache.wait_idle()

    assert cache.get_data(key) == "ok"
    assert cache.get_entry(key).is_stale


@pytest.mark.asyncio
async def test_refetch_uses_registered_refetcher():
    cache = QueryCache()
    key = ("memes", "", "")
    first, _ = counting_fetcher(["page one"])
    full, full_calls = counting_fetcher(["all pages"])

    await cache.fetch(key, first, refetch=full)
    cache.invalidate(key)
    await cache.wait_idle()

    assert full_calls["count"] == 1
    assert cache.get_data(key) == "all pages"
