"""Pydantic schemas for the Meme API.

The response models are shared by the server routes and the client
package, so both sides agree on the wire shape.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID

from pydantic import (
    AfterValidator,
    AwareDatetime,
    BaseModel,
    BeforeValidator,
    Field,
    HttpUrl,
    StringConstraints,
    field_validator,
)

from memecached.core.config import settings


class SortField(str, Enum):
    """Sort field options for the dashboard."""

    CREATED_AT = "created_at"
    DESCRIPTION = "description"


class SortOrder(str, Enum):
    """Sort order options."""

    ASC = "asc"
    DESC = "desc"


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("Description must not be blank")
    return value


TagName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Description = Annotated[str, StringConstraints(min_length=1), AfterValidator(_require_text)]
BlankAsNone = BeforeValidator(_blank_to_none)


# =============================================================================
# Requests
# =============================================================================


class CreateMemeRequest(BaseModel):
    """Body of POST /memes."""

    image_url: HttpUrl
    description: Description
    tags: list[TagName] = Field(..., min_length=1)
    image_width: Optional[int] = Field(None, ge=1)
    image_height: Optional[int] = Field(None, ge=1)


class UpdateMemeRequest(BaseModel):
    """Body of PATCH /memes/{id}.

    An absent field is left untouched; an empty tag list clears the tags.
    """

    description: Optional[Description] = None
    tags: Optional[list[TagName]] = None


class BulkDeleteRequest(BaseModel):
    """Body of POST /memes/bulk-delete."""

    ids: list[UUID] = Field(..., min_length=1)


class BulkTagRequest(BaseModel):
    """Body of POST /memes/bulk-tag."""

    ids: list[UUID] = Field(..., min_length=1)
    tags: list[TagName] = Field(..., min_length=1)


class FeedQuery(BaseModel):
    """Query string of GET /memes (cursor feed)."""

    cursor: Annotated[Optional[AwareDatetime], BlankAsNone] = None
    limit: int = settings.default_page_limit
    q: Annotated[Optional[str], BlankAsNone] = None
    tag: Annotated[Optional[str], BlankAsNone] = None

    @field_validator("cursor")
    @classmethod
    def cursor_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        try:
            return value.astimezone(timezone.utc)
        except OverflowError as e:
            raise ValueError("Cursor is out of range") from e

    @field_validator("limit")
    @classmethod
    def clamp_limit(cls, value: int) -> int:
        return max(1, min(value, settings.max_page_limit))


class DashboardQuery(BaseModel):
    """Query string of GET /memes/dashboard (offset pages)."""

    page: int = Field(1, ge=1)
    page_size: int = Field(settings.default_page_size, ge=1, le=settings.max_page_size)
    q: Annotated[Optional[str], BlankAsNone] = None
    tag: Annotated[Optional[str], BlankAsNone] = None
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC


# =============================================================================
# Responses
# =============================================================================


class MemeOut(BaseModel):
    """A meme with its tag names."""

    model_config = {"from_attributes": True}

    id: str
    user_id: str
    image_url: str
    image_width: Optional[int] = None
    image_height: Optional[int] = None
    description: str
    created_at: datetime
    updated_at: datetime
    tags: list[str] = []


class MemeListResponse(BaseModel):
    """One page of the cursor feed."""

    memes: list[MemeOut]
    next_cursor: Optional[str] = None


class DashboardResponse(BaseModel):
    """One page of the dashboard table."""

    memes: list[MemeOut]
    total: int
    page: int
    page_size: int
