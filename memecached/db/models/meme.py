"""Meme model for the image catalog."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memecached.db.base import Base

if TYPE_CHECKING:
    from memecached.db.models.meme_tag import MemeTag
    from memecached.db.models.user import User


class Meme(Base):
    """An uploaded image with a description, owned by one user.

    Tag names are not stored on the row; they are derived from MemeTag links.
    """

    __tablename__ = "memes"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # Owner is fixed at creation
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False
    )

    # Image reference (public URL derived from the storage key)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    image_width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    image_height: Mapped[int | None] = mapped_column(Integer, nullable=True)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    owner: Mapped[User] = relationship("User", back_populates="memes")
    meme_tags: Mapped[list[MemeTag]] = relationship(
        "MemeTag",
        back_populates="meme",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # Indexes
    __table_args__ = (
        # Feed pagination: WHERE created_at < cursor ORDER BY created_at DESC
        Index("ix_memes_created_at", "created_at"),
        Index("ix_memes_user_id", "user_id"),
    )
