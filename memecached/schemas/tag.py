"""Pydantic schemas for the Tag API."""

from __future__ import annotations

from pydantic import BaseModel


class TagOut(BaseModel):
    """Tag response schema."""

    model_config = {"from_attributes": True}

    id: str
    name: str


class TagListResponse(BaseModel):
    """List of all tags, sorted by name."""

    tags: list[TagOut]
