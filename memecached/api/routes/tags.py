"""Tag API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from memecached.api.deps import Principal, get_current_user
from memecached.db import get_db
from memecached.schemas.tag import TagListResponse, TagOut
from memecached.services.tag import TagResolver

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=TagListResponse)
async def list_tags(
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TagListResponse:
    """List all tags, sorted by name."""
    tags = await TagResolver(db).list_tags()
    return TagListResponse(tags=[TagOut.model_validate(t) for t in tags])
