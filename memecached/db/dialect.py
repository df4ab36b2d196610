"""Dialect-specific statement helpers."""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from memecached.db.base import Base


def insert_ignoring_conflicts(
    db: AsyncSession,
    model: type[Base],
    rows: list[dict[str, Any]],
    index_elements: list[str],
):
    """Build an INSERT that skips rows colliding on ``index_elements``.

    Both supported backends spell this ``ON CONFLICT (...) DO NOTHING``.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(model)
    elif dialect == "sqlite":
        stmt = sqlite_insert(model)
    else:
        raise NotImplementedError(f"Conflict-ignoring insert not supported for {dialect}")

    return stmt.values(rows).on_conflict_do_nothing(index_elements=index_elements)
