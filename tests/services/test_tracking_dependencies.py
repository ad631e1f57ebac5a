# tests/services/test_tracking_dependencies.py
"""
Тесты сборки зависимостей Tracking API.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.services.tracking_api import dependencies


@pytest.fixture(autouse=True)
def reset_dependencies():
    yield
    for name in (
        "_db", "_redis", "_clock", "_fanout", "_relay", "_track_store",
        "_ingest_service", "_history_service", "_surveyor_service",
    ):
        setattr(dependencies, name, None)


@pytest.mark.parametrize(
    "getter",
    [
        dependencies.get_database,
        dependencies.get_fanout,
        dependencies.get_track_store,
        dependencies.get_ingest_service,
        dependencies.get_history_service,
        dependencies.get_surveyor_service,
    ],
)
def test_getters_require_init(getter) -> None:
    with pytest.raises(RuntimeError):
        getter()


def test_relay_optional() -> None:
    assert dependencies.get_relay() is None
    assert dependencies.get_redis_client() is None


@pytest.mark.asyncio
async def test_init_shares_one_clock(mock_db: AsyncMock) -> None:
    await dependencies.init_dependencies(mock_db, liveness_window_seconds=120, subscriber_queue_size=5)

    ingest = dependencies.get_ingest_service()
    surveyors = dependencies.get_surveyor_service()

    assert ingest._clock is surveyors._clock is dependencies._clock
    assert surveyors._resolver._clock is dependencies._clock
    assert surveyors._resolver.window.total_seconds() == 120
    assert ingest._fanout is dependencies.get_fanout()
    assert dependencies.get_relay() is None
    assert dependencies.get_database() is mock_db


@pytest.mark.asyncio
async def test_init_with_redis_starts_relay(mock_db: AsyncMock, mock_redis: MagicMock) -> None:
    pubsub = MagicMock()
    pubsub.psubscribe = AsyncMock()
    pubsub.punsubscribe = AsyncMock()
    pubsub.aclose = AsyncMock()
    async def idle(**kwargs):
        await asyncio.sleep(0.01)
        return None

    pubsub.get_message = AsyncMock(side_effect=idle)
    mock_redis.pubsub.return_value = pubsub

    await dependencies.init_dependencies(mock_db, mock_redis)
    relay = dependencies.get_relay()
    assert relay is not None
    assert dependencies.get_redis_client() is mock_redis
    assert dependencies.get_ingest_service()._relay is relay

    await dependencies.cleanup_dependencies()
    pubsub.aclose.assert_awaited_once()
    with pytest.raises(RuntimeError):
        dependencies.get_fanout()


@pytest.mark.asyncio
async def test_cleanup_cancels_pending_relay(mock_db: AsyncMock) -> None:
    await dependencies.init_dependencies(mock_db)
    ingest = dependencies.get_ingest_service()
    ingest.close = AsyncMock()

    await dependencies.cleanup_dependencies()

    ingest.close.assert_awaited_once()
