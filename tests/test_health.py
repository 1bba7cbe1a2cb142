"""
Tests for the health endpoints and the out-of-request session helper.
"""
import pytest
from sqlalchemy import text

from storefront.core.database import get_db_session


@pytest.mark.asyncio
async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


@pytest.mark.asyncio
async def test_health_pings_database(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["database"] == "connected"


@pytest.mark.asyncio
async def test_get_db_session_context_manager():
    async with get_db_session() as db:
        assert await db.scalar(text("SELECT 1")) == 1
