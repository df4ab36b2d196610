"""Tests for bulk delete and bulk tag endpoints."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from memecached.db.models import Meme, MemeTag


class TestBulkDelete:
    """Tests for POST /api/v1/memes/bulk-delete."""

    @pytest.mark.asyncio
    async def test_deletes_all_owned_memes(self, client, make_meme, owner, db_session, s3):
        first = await make_meme(filename="1.png", tags=["a"])
        second = await make_meme(filename="2.png")
        keep = await make_meme(filename="3.png")

        response = await client.post(
            "/api/v1/memes/bulk-delete", json={"ids": [first.id, second.id]}
        )

        assert response.status_code == 204
        remaining = (await db_session.execute(select(Meme.id))).scalars().all()
        assert remaining == [keep.id]
        assert await db_session.scalar(select(func.count()).select_from(MemeTag)) == 0
        assert len(s3.batches) == 1
        assert sorted(s3.batches[0]) == [f"{owner.id}/1.png", f"{owner.id}/2.png"]

    @pytest.mark.asyncio
    async def test_rejects_whole_batch_if_any_not_owned(
        self, client, make_meme, other_user, db_session, s3
    ):
        mine = await make_meme()
        theirs = await make_meme(user=other_user)

        response = await client.post(
            "/api/v1/memes/bulk-delete", json={"ids": [mine.id, theirs.id]}
        )

        assert response.status_code == 403
        assert response.json() == {"detail": "Some memes not found or not owned by user"}
        assert await db_session.scalar(select(func.count()).select_from(Meme)) == 2
        assert s3.deleted == []

    @pytest.mark.asyncio
    async def test_rejects_unknown_id(self, client, make_meme, db_session):
        mine = await make_meme()

        response = await client.post(
            "/api/v1/memes/bulk-delete",
            json={"ids": [mine.id, "00000000-0000-0000-0000-000000000000"]},
        )

        assert response.status_code == 403
        assert await db_session.scalar(select(func.count()).select_from(Meme)) == 1

    @pytest.mark.asyncio
    async def test_duplicate_ids_count_once(self, client, make_meme, db_session):
        mine = await make_meme()

        response = await client.post(
            "/api/v1/memes/bulk-delete", json={"ids": [mine.id, mine.id]}
        )

        assert response.status_code == 204
        assert await db_session.scalar(select(func.count()).select_from(Meme)) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"ids": []}, {"ids": ["not-a-uuid"]}, {}])
    async def test_rejects_invalid_body(self, client, body):
        response = await client.post("/api/v1/memes/bulk-delete", json=body)
        assert response.status_code == 400
        assert response.json()["detail"].startswith("ids")

    @pytest.mark.asyncio
    async def test_storage_failure_still_deletes_rows(
        self, client, make_meme, owner, db_session, s3
    ):
        first = await make_meme(filename="1.png")
        second = await make_meme(filename="2.png")
        s3.error_keys = [f"{owner.id}/1.png"]

        response = await client.post(
            "/api/v1/memes/bulk-delete", json={"ids": [first.id, second.id]}
        )

        assert response.status_code == 204
        assert await db_session.scalar(select(func.count()).select_from(Meme)) == 0


class TestBulkTag:
    """Tests for POST /api/v1/memes/bulk-tag."""

    @pytest.mark.asyncio
    async def test_merges_tags_into_every_meme(self, client, make_meme):
        first = await make_meme(description="first", tags=["a"])
        second = await make_meme(description="second", tags=["b"])
        untouched = await make_meme(description="third", tags=["z"])

        response = await client.post(
            "/api/v1/memes/bulk-tag",
            json={"ids": [first.id, second.id], "tags": ["C", "a"]},
        )

        assert response.status_code == 204
        page = (await client.get("/api/v1/memes/dashboard")).json()
        tags = {m["id"]: m["tags"] for m in page["memes"]}
        assert tags[first.id] == ["a", "c"]
        assert tags[second.id] == ["a", "b", "c"]
        assert tags[untouched.id] == ["z"]

    @pytest.mark.asyncio
    async def test_is_idempotent(self, client, make_meme, db_session):
        meme = await make_meme(tags=["a"])
        body = {"ids": [meme.id], "tags": ["a", "b"]}

        first = await client.post("/api/v1/memes/bulk-tag", json=body)
        second = await client.post("/api/v1/memes/bulk-tag", json=body)

        assert first.status_code == second.status_code == 204
        assert await db_session.scalar(select(func.count()).select_from(MemeTag)) == 2

    @pytest.mark.asyncio
    async def test_rejects_whole_batch_if_any_not_owned(
        self, client, make_meme, other_user, db_session
    ):
        mine = await make_meme()
        theirs = await make_meme(user=other_user)

        response = await client.post(
            "/api/v1/memes/bulk-tag",
            json={"ids": [mine.id, theirs.id], "tags": ["new"]},
        )

        assert response.status_code == 403
        assert await db_session.scalar(select(func.count()).select_from(MemeTag)) == 0

    @pytest.mark.asyncio
    async def test_requires_tags(self, client, make_meme):
        meme = await make_meme()

        response = await client.post(
            "/api/v1/memes/bulk-tag", json={"ids": [meme.id], "tags": []}
        )

        assert response.status_code == 400
        assert response.json()["detail"].startswith("tags")
