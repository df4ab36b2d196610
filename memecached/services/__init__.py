"""Catalog services for memecached."""

from memecached.services.exceptions import (
    CatalogError,
    ForbiddenError,
    MemeNotFoundError,
    UpstreamError,
    ValidationFailedError,
)
from memecached.services.meme import MemeService
from memecached.services.meme_tags import MemeTagLinker
from memecached.services.pagination import CursorFeed, OffsetPage
from memecached.services.tag import TagResolver

__all__ = [
    "CatalogError",
    "CursorFeed",
    "ForbiddenError",
    "MemeNotFoundError",
    "MemeService",
    "MemeTagLinker",
    "OffsetPage",
    "TagResolver",
    "UpstreamError",
    "ValidationFailedError",
]
