"""Tests for the identity gate."""

import pytest
from httpx import AsyncClient

from memecached.db.models import UserStatus


@pytest.mark.asyncio
async def test_missing_header_redirects_to_login(app_client: AsyncClient) -> None:
    response = await app_client.get("/api/v1/memes")
    assert response.status_code == 401
    assert response.json() == {"redirect": "/login"}


@pytest.mark.asyncio
async def test_unknown_user_redirects_to_login(app_client: AsyncClient) -> None:
    response = await app_client.get(
        "/api/v1/memes", headers={"X-User-Id": "00000000-0000-0000-0000-000000000000"}
    )
    assert response.status_code == 401
    assert response.json() == {"redirect": "/login"}


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [UserStatus.PENDING, UserStatus.REJECTED])
async def test_unapproved_user_redirects_to_pending(
    app_client: AsyncClient, make_user, status: UserStatus
) -> None:
    user = await make_user("waiting@example.com", status=status)

    response = await app_client.get("/api/v1/tags", headers={"X-User-Id": user.id})

    assert response.status_code == 403
    assert response.json() == {"redirect": f"/pending?status={status.value}"}


@pytest.mark.asyncio
async def test_denied_before_body_validation(app_client: AsyncClient) -> None:
    """An anonymous invalid request gets the redirect, not a validation error."""
    response = await app_client.post("/api/v1/memes", content=b"{broken")
    assert response.status_code == 401
    assert response.json() == {"redirect": "/login"}


@pytest.mark.asyncio
async def test_approved_user_passes(client: AsyncClient) -> None:
    response = await client.get("/api/v1/tags")
    assert response.status_code == 200
    assert response.json() == {"tags": []}
