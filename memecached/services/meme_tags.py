"""Meme-tag link management.

Links have no lifecycle of their own. They are written in one of two modes:

- replace-all: a meme's links are cleared and rewritten (single update)
- merge-add: links are added across a set of memes, existing ones kept (bulk tag)

Removal when a meme or tag is deleted is left to the store's
``ON DELETE CASCADE`` on both foreign keys.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from memecached.core.logging import get_logger
from memecached.db.dialect import insert_ignoring_conflicts
from memecached.db.models import MemeTag, Tag

logger = get_logger(__name__)


class MemeTagLinker:
    """Service for writing and reading meme-tag associations."""

    def __init__(self, db: AsyncSession):
        """Initialize the linker.

        Args:
            db: The database session.
        """
        self.db = db

    async def link(self, meme_id: str, tags: Sequence[Tag]) -> None:
        """Link a freshly created meme to its tags."""
        if not tags:
            return
        await self.db.execute(
            insert(MemeTag).values(
                [{"meme_id": meme_id, "tag_id": tag.id} for tag in tags]
            )
        )

    async def replace_all(self, meme_id: str, tags: Sequence[Tag]) -> None:
        """Replace every link of a meme with links to ``tags``.

        An empty ``tags`` leaves the meme with no tags.
        """
        await self.db.execute(delete(MemeTag).where(MemeTag.meme_id == meme_id))
        await self.link(meme_id, tags)

        logger.debug("meme_tags_replaced", meme_id=meme_id, tag_count=len(tags))

    async def merge_add(self, meme_ids: Sequence[str], tags: Sequence[Tag]) -> None:
        """Add every (meme, tag) pair that is not linked yet.

        Running it twice with the same arguments changes nothing the second time.
        """
        rows = [
            {"meme_id": meme_id, "tag_id": tag.id}
            for meme_id in meme_ids
            for tag in tags
        ]
        if not rows:
            return

        await self.db.execute(
            insert_ignoring_conflicts(
                self.db,
                MemeTag,
                rows,
                index_elements=["meme_id", "tag_id"],
            )
        )

        logger.debug(
            "meme_tags_merged",
            meme_count=len(meme_ids),
            tag_count=len(tags),
        )

    async def tag_names_for(self, meme_ids: Sequence[str]) -> dict[str, list[str]]:
        """Get tag names for a batch of memes in a single query.

        Names are grouped per meme in the order the store returns them.

        Args:
            meme_ids: IDs of the memes to look up.

        Returns:
            Mapping of meme ID to its tag names. Memes without tags are absent.
        """
        if not meme_ids:
            return {}

        result = await self.db.execute(
            select(MemeTag.meme_id, Tag.name)
            .join(Tag, MemeTag.tag_id == Tag.id)
            .where(MemeTag.meme_id.in_(meme_ids))
        )

        tag_map: dict[str, list[str]] = defaultdict(list)
        for meme_id, name in result.all():
            tag_map[meme_id].append(name)
        return dict(tag_map)
