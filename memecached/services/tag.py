"""Tag resolution: normalize names, upsert missing tags, return canonical rows."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from memecached.core.logging import get_logger
from memecached.db.dialect import insert_ignoring_conflicts
from memecached.db.models import Tag

logger = get_logger(__name__)


def normalize_tag_name(name: str) -> str:
    """Normalize a tag name (trimmed, lowercase)."""
    return name.strip().lower()


def normalize_tag_names(names: Iterable[str]) -> list[str]:
    """Normalize and dedupe tag names, keeping first-seen order.

    Names that are empty after trimming are dropped.
    """
    normalized = (normalize_tag_name(name) for name in names)
    return list(dict.fromkeys(name for name in normalized if name))


class TagResolver:
    """Turns raw tag names into canonical Tag rows.

    Creation is idempotent: names that already exist are left alone, so two
    writers racing to create the same tag both end up with the same row.
    Tags are never deleted here.
    """

    def __init__(self, db: AsyncSession):
        """Initialize the resolver.

        Args:
            db: The database session.
        """
        self.db = db

    async def resolve(self, names: Sequence[str]) -> list[Tag]:
        """Upsert the given tag names and return their rows.

        Args:
            names: Raw tag names, possibly mixed-case or duplicated.

        Returns:
            One Tag per distinct normalized name, ordered by name. Only the
            requested names are returned.
        """
        normalized = normalize_tag_names(names)
        if not normalized:
            return []

        await self.db.execute(
            insert_ignoring_conflicts(
                self.db,
                Tag,
                [{"id": str(uuid.uuid4()), "name": name} for name in normalized],
                index_elements=["name"],
            )
        )

        result = await self.db.execute(
            select(Tag).where(Tag.name.in_(normalized)).order_by(Tag.name)
        )
        tags = list(result.scalars().all())

        logger.debug(
            "tags_resolved",
            requested=len(normalized),
            resolved=len(tags),
        )

        return tags

    async def list_tags(self) -> list[Tag]:
        """Get every tag, sorted by name."""
        result = await self.db.execute(select(Tag).order_by(Tag.name))
        return list(result.scalars().all())
