"""Meme API endpoints.

Two read paths share one filter (owner, description substring, exact tag):
the cursor feed for the gallery and numbered pages for the dashboard.
Mutations are scoped to the caller's own memes.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from memecached.api.deps import Principal, get_current_user, get_storage
from memecached.api.validation import parse_body, parse_query
from memecached.core.logging import get_logger
from memecached.db import get_db
from memecached.schemas.meme import (
    BulkDeleteRequest,
    BulkTagRequest,
    CreateMemeRequest,
    DashboardQuery,
    DashboardResponse,
    FeedQuery,
    MemeListResponse,
    MemeOut,
    UpdateMemeRequest,
)
from memecached.services.exceptions import (
    CatalogError,
    ForbiddenError,
    MemeNotFoundError,
    UpstreamError,
    ValidationFailedError,
)
from memecached.services.meme import MemeService
from memecached.services.pagination import CursorFeed, OffsetPage
from memecached.services.storage import ObjectStorage

logger = get_logger(__name__)

router = APIRouter(prefix="/memes", tags=["memes"])


def _http_error(error: CatalogError) -> HTTPException:
    """Map a catalog error to its HTTP response."""
    if isinstance(error, ValidationFailedError):
        return HTTPException(status_code=400, detail=error.detail)
    if isinstance(error, MemeNotFoundError):
        return HTTPException(status_code=404, detail=error.message)
    if isinstance(error, ForbiddenError):
        return HTTPException(status_code=403, detail=error.message)
    if isinstance(error, UpstreamError):
        return HTTPException(status_code=502, detail=error.message)
    return HTTPException(status_code=500, detail=error.message)


@router.get("", response_model=MemeListResponse)
async def list_memes(
    request: Request,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MemeListResponse:
    """List the caller's memes, newest first, one cursor page at a time.

    Query: ``cursor`` (ISO timestamp from the previous page), ``limit``
    (clamped to 1-50, default 20), ``q`` and ``tag`` filters.
    """
    try:
        query = parse_query(request, FeedQuery)
    except CatalogError as e:
        raise _http_error(e) from e

    return await CursorFeed(db).fetch(user.id, query)


@router.get("/dashboard", response_model=DashboardResponse)
async def list_dashboard_memes(
    request: Request,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DashboardResponse:
    """List one numbered page of the caller's memes with a total count.

    Query: ``page``, ``page_size``, ``q``, ``tag``, ``sort_by``
    (created_at | description) and ``sort_order`` (asc | desc).
    """
    try:
        query = parse_query(request, DashboardQuery)
    except CatalogError as e:
        raise _http_error(e) from e

    return await OffsetPage(db).fetch(user.id, query)


@router.post("", response_model=MemeOut, status_code=201)
async def create_meme(
    request: Request,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MemeOut:
    """Create a meme from an uploaded image URL, a description and tags."""
    try:
        body = await parse_body(request, CreateMemeRequest)
        meme = await MemeService(db).create_meme(user.id, body)
    except CatalogError as e:
        raise _http_error(e) from e

    await db.commit()
    return meme


@router.post("/bulk-delete", status_code=204)
async def bulk_delete_memes(
    request: Request,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
) -> None:
    """Delete several memes; rejected as a whole if any is not the caller's."""
    try:
        body = await parse_body(request, BulkDeleteRequest)
        await MemeService(db, storage).bulk_delete(user.id, body.ids)
    except CatalogError as e:
        raise _http_error(e) from e


@router.post("/bulk-tag", status_code=204)
async def bulk_tag_memes(
    request: Request,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Add tags to several memes, keeping the tags they already have."""
    try:
        body = await parse_body(request, BulkTagRequest)
        await MemeService(db).bulk_tag(user.id, body.ids, body.tags)
    except CatalogError as e:
        raise _http_error(e) from e

    await db.commit()


@router.patch("/{meme_id}", response_model=MemeOut)
async def update_meme(
    meme_id: str,
    request: Request,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MemeOut:
    """Update a meme's description and/or replace its tags.

    Returns 404 both for unknown memes and for memes owned by someone else.
    """
    try:
        body = await parse_body(request, UpdateMemeRequest)
        meme = await MemeService(db).update_meme(user.id, meme_id, body)
    except CatalogError as e:
        raise _http_error(e) from e

    await db.commit()
    return meme


@router.delete("/{meme_id}", status_code=204)
async def delete_meme(
    meme_id: str,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
) -> None:
    """Delete a meme and its image."""
    try:
        await MemeService(db, storage).delete_meme(user.id, meme_id)
    except CatalogError as e:
        raise _http_error(e) from e
