"""Pagination engines for listing a user's memes.

Two strategies read the same filtered set:

- ``CursorFeed``: newest first, keyed by ``created_at``, for infinite scrolling.
- ``OffsetPage``: count + slice with a selectable sort, for the dashboard.

Both attach tag names with one follow-up query per page.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from memecached.core.logging import get_logger
from memecached.db.models import Meme, MemeTag, Tag
from memecached.schemas.meme import (
    DashboardQuery,
    DashboardResponse,
    FeedQuery,
    MemeListResponse,
    MemeOut,
    SortField,
    SortOrder,
)
from memecached.services.meme_tags import MemeTagLinker
from memecached.services.tag import normalize_tag_name

logger = get_logger(__name__)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    SQLite hands timestamps back without a zone; they are stored as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def serialize_meme(meme: Meme, tags: list[str]) -> MemeOut:
    """Build the response model for a meme row and its tag names."""
    return MemeOut(
        id=meme.id,
        user_id=meme.user_id,
        image_url=meme.image_url,
        image_width=meme.image_width,
        image_height=meme.image_height,
        description=meme.description,
        created_at=as_utc(meme.created_at),
        updated_at=as_utc(meme.updated_at),
        tags=tags,
    )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_meme_filter(owner_id: str, q: str | None, tag: str | None) -> list[Any]:
    """Build the WHERE conditions shared by both engines.

    Args:
        owner_id: Only memes owned by this user are listed.
        q: Optional case-insensitive substring of the description.
        tag: Optional exact tag name (case-folded before matching).

    Returns:
        Conditions to AND together.
    """
    conditions: list[Any] = [Meme.user_id == owner_id]

    if q:
        conditions.append(Meme.description.ilike(f"%{_escape_like(q)}%", escape="\\"))

    if tag:
        # Sub-query rather than a join so multi-tag memes are not repeated
        memes_with_tag = (
            select(MemeTag.meme_id)
            .join(Tag, MemeTag.tag_id == Tag.id)
            .where(Tag.name == normalize_tag_name(tag))
        )
        conditions.append(Meme.id.in_(memes_with_tag))

    return conditions


class CursorFeed:
    """Infinite feed ordered by creation time, newest first."""

    def __init__(self, db: AsyncSession):
        """Initialize the feed.

        Args:
            db: The database session.
        """
        self.db = db

    async def fetch(self, owner_id: str, query: FeedQuery) -> MemeListResponse:
        """Fetch one feed page.

        One extra row is read past ``limit``: if it exists there is a next
        page, and the cursor is the creation time of the last row kept.

        Args:
            owner_id: The caller's user ID.
            query: Validated feed query (limit already clamped).

        Returns:
            The page and the cursor for the next one (None at the end).
        """
        conditions = build_meme_filter(owner_id, query.q, query.tag)
        if query.cursor is not None:
            conditions.append(Meme.created_at < as_utc(query.cursor))

        result = await self.db.execute(
            select(Meme)
            .where(and_(*conditions))
            .order_by(Meme.created_at.desc())
            .limit(query.limit + 1)
        )
        rows: Sequence[Meme] = result.scalars().all()

        next_cursor: str | None = None
        if len(rows) > query.limit:
            rows = rows[: query.limit]
            next_cursor = as_utc(rows[-1].created_at).isoformat()

        tag_map = await MemeTagLinker(self.db).tag_names_for([m.id for m in rows])

        logger.debug(
            "feed_page_fetched",
            owner_id=owner_id,
            count=len(rows),
            has_more=next_cursor is not None,
        )

        return MemeListResponse(
            memes=[serialize_meme(m, tag_map.get(m.id, [])) for m in rows],
            next_cursor=next_cursor,
        )


class OffsetPage:
    """Numbered, sortable pages with a total count."""

    def __init__(self, db: AsyncSession):
        """Initialize the pager.

        Args:
            db: The database session.
        """
        self.db = db

    async def fetch(self, owner_id: str, query: DashboardQuery) -> DashboardResponse:
        """Fetch one dashboard page.

        The total is counted with the same filter before the slice is read.
        A page past the end returns no memes and the same total.

        Args:
            owner_id: The caller's user ID.
            query: Validated dashboard query.

        Returns:
            The page, the total match count, and the page coordinates.
        """
        where = and_(*build_meme_filter(owner_id, query.q, query.tag))

        total_result = await self.db.execute(
            select(func.count()).select_from(Meme).where(where)
        )
        total = total_result.scalar() or 0

        sort_column = Meme.description if query.sort_by == SortField.DESCRIPTION else Meme.created_at
        order = sort_column.asc() if query.sort_order == SortOrder.ASC else sort_column.desc()

        offset = (query.page - 1) * query.page_size
        rows: Sequence[Meme] = []
        # Past the end: no slice, and no offset too large for the store to bind
        if offset < total:
            result = await self.db.execute(
                select(Meme)
                .where(where)
                .order_by(order, Meme.id.asc())
                .offset(offset)
                .limit(query.page_size)
            )
            rows = result.scalars().all()

        tag_map = await MemeTagLinker(self.db).tag_names_for([m.id for m in rows])

        logger.debug(
            "dashboard_page_fetched",
            owner_id=owner_id,
            page=query.page,
            count=len(rows),
            total=total,
        )

        return DashboardResponse(
            memes=[serialize_meme(m, sorted(tag_map.get(m.id, []))) for m in rows],
            total=total,
            page=query.page,
            page_size=query.page_size,
        )
