"""Tag model for meme categorization."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memecached.db.base import Base

if TYPE_CHECKING:
    from memecached.db.models.meme_tag import MemeTag


class Tag(Base):
    """A tag for categorizing memes.

    Names are stored lowercased; the unique constraint on name is what makes
    concurrent creation of the same tag collapse to one row.
    """

    __tablename__ = "tags"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    meme_tags: Mapped[list[MemeTag]] = relationship(
        "MemeTag",
        back_populates="tag",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
