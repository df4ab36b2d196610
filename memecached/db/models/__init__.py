"""Database models for memecached."""

from memecached.db.models.enums import UserRole, UserStatus
from memecached.db.models.meme import Meme
from memecached.db.models.meme_tag import MemeTag
from memecached.db.models.tag import Tag
from memecached.db.models.user import User

__all__ = [
    # Models
    "Meme",
    "MemeTag",
    "Tag",
    "User",
    # Enums
    "UserRole",
    "UserStatus",
]
