"""Optimistic edits for cached feed and dashboard entries.

Every function here is pure: it returns a new entry and never mutates its
input, so a snapshot taken beforehand stays valid for rollback. Entries
that contain none of the targeted memes come back as the same object.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from memecached.client.catalog_cache import FeedData
from memecached.schemas.meme import DashboardResponse, MemeListResponse, MemeOut

MemeEdit = Callable[[MemeOut], MemeOut]


def _edit_memes(memes: list[MemeOut], ids: set[str], edit: MemeEdit) -> tuple[list[MemeOut], bool]:
    changed = False
    result = []
    for meme in memes:
        if meme.id in ids:
            result.append(edit(meme))
            changed = True
        else:
            result.append(meme)
    return result, changed


def _edit_feed(data: Optional[FeedData], ids: set[str], edit: MemeEdit) -> Optional[FeedData]:
    if data is None:
        return None
    pages = []
    changed = False
    for page in data.pages:
        memes, page_changed = _edit_memes(page.memes, ids, edit)
        pages.append(page.model_copy(update={"memes": memes}) if page_changed else page)
        changed = changed or page_changed
    if not changed:
        return data
    return data.model_copy(update={"pages": pages, "page_params": list(data.page_params)})


def _edit_page(
    data: Optional[DashboardResponse], ids: set[str], edit: MemeEdit
) -> Optional[DashboardResponse]:
    if data is None:
        return None
    memes, changed = _edit_memes(data.memes, ids, edit)
    if not changed:
        return data
    return data.model_copy(update={"memes": memes})


# =============================================================================
# Remove
# =============================================================================


def remove_from_feed(data: Optional[FeedData], ids: Iterable[str]) -> Optional[FeedData]:
    """Drop memes from every page of a feed entry."""
    if data is None:
        return None
    removed = set(ids)
    pages: list[MemeListResponse] = []
    changed = False
    for page in data.pages:
        memes = [m for m in page.memes if m.id not in removed]
        if len(memes) != len(page.memes):
            pages.append(page.model_copy(update={"memes": memes}))
            changed = True
        else:
            pages.append(page)
    if not changed:
        return data
    return data.model_copy(update={"pages": pages, "page_params": list(data.page_params)})


def remove_from_page(
    data: Optional[DashboardResponse], ids: Iterable[str]
) -> Optional[DashboardResponse]:
    """Drop memes from a dashboard page, lowering its total by the number removed."""
    if data is None:
        return None
    removed = set(ids)
    memes = [m for m in data.memes if m.id not in removed]
    count = len(data.memes) - len(memes)
    if count == 0:
        return data
    return data.model_copy(update={"memes": memes, "total": max(0, data.total - count)})


# =============================================================================
# Update
# =============================================================================


def _updater(description: Optional[str], tags: Optional[list[str]]) -> MemeEdit:
    changes: dict = {}
    if description is not None:
        changes["description"] = description
    if tags is not None:
        changes["tags"] = sorted(tags)

    def edit(meme: MemeOut) -> MemeOut:
        return meme.model_copy(update=changes)

    return edit


def update_in_feed(
    data: Optional[FeedData],
    meme_id: str,
    description: Optional[str] = None,
    tags: Optional[list[str]] = None,
) -> Optional[FeedData]:
    """Apply a description and/or tag change to one meme in a feed entry."""
    return _edit_feed(data, {meme_id}, _updater(description, tags))


def update_in_page(
    data: Optional[DashboardResponse],
    meme_id: str,
    description: Optional[str] = None,
    tags: Optional[list[str]] = None,
) -> Optional[DashboardResponse]:
    """Apply a description and/or tag change to one meme in a dashboard page."""
    return _edit_page(data, {meme_id}, _updater(description, tags))


# =============================================================================
# Merge tags
# =============================================================================


def _merger(tags: Iterable[str]) -> MemeEdit:
    added = set(tags)

    def edit(meme: MemeOut) -> MemeOut:
        return meme.model_copy(update={"tags": sorted(set(meme.tags) | added)})

    return edit


def merge_tags_in_feed(
    data: Optional[FeedData], ids: Iterable[str], tags: Iterable[str]
) -> Optional[FeedData]:
    """Union new tags into the listed memes of a feed entry."""
    return _edit_feed(data, set(ids), _merger(tags))


def merge_tags_in_page(
    data: Optional[DashboardResponse], ids: Iterable[str], tags: Iterable[str]
) -> Optional[DashboardResponse]:
    """Union new tags into the listed memes of a dashboard page."""
    return _edit_page(data, set(ids), _merger(tags))
