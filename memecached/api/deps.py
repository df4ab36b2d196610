"""Request dependencies: caller identity and image storage.

Identity is verified upstream; requests arrive with an ``X-User-Id`` header
naming a provisioned account. The gate only resolves it and rejects callers
that are unknown or not yet approved. Its denials are returned unchanged,
before any catalog logic runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from memecached.db import get_db
from memecached.db.models import User, UserRole, UserStatus
from memecached.services.storage import ObjectStorage


@dataclass(frozen=True)
class Principal:
    """The authenticated caller."""

    id: str
    role: UserRole
    status: UserStatus


class AuthDenied(Exception):
    """Raised when the identity gate turns a request away.

    Rendered as ``{"redirect": <destination>}`` with ``status_code``.
    """

    def __init__(self, status_code: int, redirect: str):
        self.status_code = status_code
        self.redirect = redirect
        super().__init__(f"{status_code} -> {redirect}")


async def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """Resolve the caller to an approved account."""
    if not x_user_id:
        raise AuthDenied(401, "/login")

    user = await db.get(User, x_user_id)
    if user is None:
        raise AuthDenied(401, "/login")

    if user.status != UserStatus.APPROVED:
        raise AuthDenied(403, f"/pending?status={user.status.value}")

    return Principal(id=user.id, role=user.role, status=user.status)


@lru_cache
def get_storage() -> ObjectStorage:
    """Get the shared image storage adapter."""
    return ObjectStorage()
