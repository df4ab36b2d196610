"""Tests for the offset dashboard (GET /api/v1/memes/dashboard)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

BASE_TIME = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


async def seed(make_meme, descriptions: list[str]):
    """Create memes one minute apart in the given order."""
    return [
        await make_meme(description=d, created_at=BASE_TIME + timedelta(minutes=i))
        for i, d in enumerate(descriptions)
    ]


@pytest.mark.asyncio
async def test_defaults(client, make_meme):
    memes = await seed(make_meme, ["a", "b", "c"])

    data = (await client.get("/api/v1/memes/dashboard")).json()

    assert data["total"] == 3
    assert data["page"] == 1
    assert data["page_size"] == 20
    assert [m["id"] for m in data["memes"]] == [m.id for m in reversed(memes)]


@pytest.mark.asyncio
async def test_pages_slice_and_total(client, make_meme):
    await seed(make_meme, [f"m{i}" for i in range(5)])

    pages = [
        (
            await client.get(
                "/api/v1/memes/dashboard",
                params={"page": page, "page_size": 2, "sort_order": "asc"},
            )
        ).json()
        for page in (1, 2, 3)
    ]

    assert [[m["description"] for m in p["memes"]] for p in pages] == [
        ["m0", "m1"],
        ["m2", "m3"],
        ["m4"],
    ]
    assert {p["total"] for p in pages} == {5}


@pytest.mark.asyncio
async def test_page_past_end_is_empty_with_total(client, make_meme):
    await seed(make_meme, ["a", "b"])

    data = (
        await client.get("/api/v1/memes/dashboard", params={"page": 9, "page_size": 5})
    ).json()

    assert data["memes"] == []
    assert data["total"] == 2
    assert data["page"] == 9


@pytest.mark.asyncio
async def test_huge_page_is_empty_with_total(client, make_meme):
    await seed(make_meme, ["a", "b"])

    response = await client.get(
        "/api/v1/memes/dashboard", params={"page": 10**18, "page_size": 100}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["memes"] == []
    assert data["total"] == 2
    assert data["page"] == 10**18


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "order, expected",
    [("asc", ["apple", "banana", "cherry"]), ("desc", ["cherry", "banana", "apple"])],
)
async def test_sort_by_description(client, make_meme, order, expected):
    await seed(make_meme, ["cherry", "apple", "banana"])

    data = (
        await client.get(
            "/api/v1/memes/dashboard",
            params={"sort_by": "description", "sort_order": order},
        )
    ).json()

    assert [m["description"] for m in data["memes"]] == expected


@pytest.mark.asyncio
async def test_tags_sorted_per_meme(client, make_meme):
    await make_meme(tags=["zeta", "alpha", "mid"])

    data = (await client.get("/api/v1/memes/dashboard")).json()

    assert data["memes"][0]["tags"] == ["alpha", "mid", "zeta"]


@pytest.mark.asyncio
async def test_filter_applies_to_total(client, make_meme, other_user):
    await make_meme(description="cat one", tags=["pets"])
    await make_meme(description="cat two")
    await make_meme(description="dog", tags=["pets"])
    await make_meme(description="cat three", tags=["pets"], user=other_user)

    by_text = (await client.get("/api/v1/memes/dashboard", params={"q": "CAT"})).json()
    by_tag = (await client.get("/api/v1/memes/dashboard", params={"tag": "Pets"})).json()

    assert by_text["total"] == 2
    assert by_tag["total"] == 2
    assert {m["description"] for m in by_tag["memes"]} == {"cat one", "dog"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params, field",
    [
        ({"page": 0}, "page"),
        ({"page": "two"}, "page"),
        ({"page_size": 0}, "page_size"),
        ({"page_size": 101}, "page_size"),
        ({"sort_by": "likes"}, "sort_by"),
        ({"sort_order": "sideways"}, "sort_order"),
    ],
)
async def test_invalid_query_rejected(client, params, field):
    response = await client.get("/api/v1/memes/dashboard", params=params)

    assert response.status_code == 400
    assert response.json()["detail"].startswith(f"{field}: ")
