"""Tests de la vérification de santé de la base."""
import pytest

from football_league.db.connection import Database
from football_league.monitoring.healthcheck import check_database


@pytest.mark.asyncio
async def test_healthy(database):
    health = await check_database(database)
    assert health["status"] == "healthy"
    assert health["response_time_ms"] >= 0


@pytest.mark.asyncio
async def test_unhealthy(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'absent' / 'football.db'}")
    try:
        health = await check_database(database)
    finally:
        await database.dispose()

    assert health["status"] == "unhealthy"
    assert health["error"]
