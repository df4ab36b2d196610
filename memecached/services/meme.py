"""Meme mutation service.

Each public method is one unit of work on the caller's session: the route's
session commits when the handler returns and rolls back if it raises, so a
failed mutation leaves no partial rows behind.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from memecached.core.logging import get_logger
from memecached.db.models import Meme
from memecached.schemas.meme import CreateMemeRequest, MemeOut, UpdateMemeRequest
from memecached.services.exceptions import ForbiddenError, MemeNotFoundError, UpstreamError
from memecached.services.meme_tags import MemeTagLinker
from memecached.services.pagination import serialize_meme
from memecached.services.storage import ObjectStorage, extract_key_from_url
from memecached.services.tag import TagResolver

logger = get_logger(__name__)


def _unique_ids(ids: Sequence[UUID | str]) -> list[str]:
    return list(dict.fromkeys(str(meme_id) for meme_id in ids))


class MemeService:
    """Create, update, delete and bulk-edit a user's memes."""

    def __init__(self, db: AsyncSession, storage: ObjectStorage | None = None):
        """Initialize the meme service.

        Args:
            db: The database session.
            storage: Image storage, required for the delete operations.
        """
        self.db = db
        self.storage = storage
        self.tags = TagResolver(db)
        self.links = MemeTagLinker(db)

    async def create_meme(self, owner_id: str, request: CreateMemeRequest) -> MemeOut:
        """Create a meme owned by ``owner_id`` with its initial tags.

        Returns:
            The new meme; tag names are ordered by name.
        """
        meme = Meme(
            user_id=owner_id,
            image_url=str(request.image_url),
            image_width=request.image_width,
            image_height=request.image_height,
            description=request.description,
        )
        self.db.add(meme)
        await self.db.flush()

        tags = await self.tags.resolve(request.tags)
        await self.links.link(meme.id, tags)

        logger.info(
            "meme_created",
            meme_id=meme.id,
            owner_id=owner_id,
            tags=[tag.name for tag in tags],
        )

        return serialize_meme(meme, [tag.name for tag in tags])

    async def update_meme(
        self,
        owner_id: str,
        meme_id: str,
        request: UpdateMemeRequest,
    ) -> MemeOut:
        """Update a meme's description and/or replace its tags.

        A supplied tag list replaces all existing tags (empty clears them).
        Without one, the meme's current tags are read back unchanged.

        Raises:
            MemeNotFoundError: If the meme is missing or owned by someone else.
        """
        meme = await self._get_owned(owner_id, meme_id)

        if request.description is not None:
            meme.description = request.description

        if request.tags is not None:
            tags = await self.tags.resolve(request.tags)
            await self.links.replace_all(meme.id, tags)
            tag_names = [tag.name for tag in tags]
            meme.updated_at = datetime.now(timezone.utc)
        else:
            tag_map = await self.links.tag_names_for([meme.id])
            tag_names = tag_map.get(meme.id, [])

        await self.db.flush()

        logger.info(
            "meme_updated",
            meme_id=meme.id,
            description_changed=request.description is not None,
            tags_replaced=request.tags is not None,
        )

        return serialize_meme(meme, tag_names)

    async def delete_meme(self, owner_id: str, meme_id: str) -> None:
        """Delete a meme, then its image.

        The row delete is committed before the image is touched; a failed
        image delete leaves an orphaned object, never an orphaned row.

        Raises:
            MemeNotFoundError: If the meme is missing or owned by someone else.
        """
        meme = await self._get_owned(owner_id, meme_id)
        key = extract_key_from_url(meme.image_url)

        # Links go with the row via ON DELETE CASCADE
        await self.db.delete(meme)
        await self.db.commit()

        logger.info("meme_deleted", meme_id=meme_id, owner_id=owner_id)

        await self._delete_images([key])

    async def bulk_delete(self, owner_id: str, ids: Sequence[UUID | str]) -> int:
        """Delete several memes at once, all or nothing.

        Raises:
            ForbiddenError: If any ID is missing or owned by someone else.

        Returns:
            Number of memes deleted.
        """
        meme_ids = _unique_ids(ids)

        result = await self.db.execute(
            select(Meme.id, Meme.image_url).where(
                Meme.id.in_(meme_ids),
                Meme.user_id == owner_id,
            )
        )
        owned = result.all()
        if len(owned) != len(meme_ids):
            logger.warning(
                "bulk_delete_rejected",
                owner_id=owner_id,
                requested=len(meme_ids),
                owned=len(owned),
            )
            raise ForbiddenError()

        keys = [extract_key_from_url(image_url) for _, image_url in owned]

        await self.db.execute(
            delete(Meme).where(Meme.id.in_(meme_ids), Meme.user_id == owner_id)
        )
        await self.db.commit()

        logger.info("memes_bulk_deleted", owner_id=owner_id, count=len(meme_ids))

        await self._delete_images(keys)
        return len(meme_ids)

    async def bulk_tag(
        self,
        owner_id: str,
        ids: Sequence[UUID | str],
        tag_names: Sequence[str],
    ) -> None:
        """Add tags to several memes at once, keeping their existing tags.

        Raises:
            ForbiddenError: If any ID is missing or owned by someone else.
        """
        meme_ids = _unique_ids(ids)

        count_result = await self.db.execute(
            select(func.count(Meme.id)).where(
                Meme.id.in_(meme_ids),
                Meme.user_id == owner_id,
            )
        )
        owned = count_result.scalar() or 0
        if owned != len(meme_ids):
            logger.warning(
                "bulk_tag_rejected",
                owner_id=owner_id,
                requested=len(meme_ids),
                owned=owned,
            )
            raise ForbiddenError()

        tags = await self.tags.resolve(tag_names)
        await self.links.merge_add(meme_ids, tags)
        await self.db.flush()

        logger.info(
            "memes_bulk_tagged",
            owner_id=owner_id,
            count=len(meme_ids),
            tags=[tag.name for tag in tags],
        )

    async def _get_owned(self, owner_id: str, meme_id: str) -> Meme:
        result = await self.db.execute(
            select(Meme).where(Meme.id == meme_id, Meme.user_id == owner_id)
        )
        meme = result.scalar_one_or_none()
        if meme is None:
            raise MemeNotFoundError()
        return meme

    async def _delete_images(self, keys: list[str]) -> None:
        if self.storage is None:
            raise RuntimeError("MemeService needs storage to delete images")
        try:
            if len(keys) == 1:
                await self.storage.delete(keys[0])
            else:
                await self.storage.delete_many(keys)
        except UpstreamError as e:
            # Not retried: the rows are gone, a leftover object is harmless
            logger.warning("image_delete_failed", keys=keys, error=e.message)
