"""MemeTag model for meme-tag associations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memecached.db.base import Base

if TYPE_CHECKING:
    from memecached.db.models.meme import Meme
    from memecached.db.models.tag import Tag


class MemeTag(Base):
    """Association between memes and tags."""

    __tablename__ = "meme_tags"

    # Composite primary key via foreign keys
    meme_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("memes.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    )

    meme: Mapped[Meme] = relationship("Meme", back_populates="meme_tags")
    tag: Mapped[Tag] = relationship("Tag", back_populates="meme_tags")

    # The composite key covers lookups by meme_id; this covers lookups by tag_id
    __table_args__ = (Index("ix_meme_tags_tag_id", "tag_id"),)
