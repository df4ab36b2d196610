"""Tests for the declarative base and the tables it creates."""

import pytest
from sqlalchemy import inspect


def _constraint_names(sync_conn):
    inspector = inspect(sync_conn)
    return {
        "uq": {
            c["name"]
            for table in ("users", "tags")
            for c in inspector.get_unique_constraints(table)
        },
        "fk": {
            fk["name"]
            for table in ("memes", "meme_tags")
            for fk in inspector.get_foreign_keys(table)
        },
        "ix": {
            ix["name"]
            for table in ("memes", "meme_tags")
            for ix in inspector.get_indexes(table)
        },
    }


@pytest.mark.asyncio
async def test_constraint_names_match_migration(db_engine):
    async with db_engine.connect() as conn:
        names = await conn.run_sync(_constraint_names)

    assert names["uq"] == {"uq_users_email", "uq_tags_name"}
    assert names["fk"] == {
        "fk_memes_user_id_users",
        "fk_meme_tags_meme_id_memes",
        "fk_meme_tags_tag_id_tags",
    }
    assert names["ix"] == {"ix_memes_created_at", "ix_memes_user_id", "ix_meme_tags_tag_id"}
