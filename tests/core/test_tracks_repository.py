# tests/core/test_tracks_repository.py
"""
Тесты для PostgresTrackStore и модели LocationSample.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from src.core.tracks.models import LocationSample, to_wkt_point
from src.core.tracks.repository import PostgresTrackStore
from src.shared.models.location_dto import LiveLocationMessage


class TestLocationSample:

    def test_from_message_derives_wkt_geom(self) -> None:
        message = LiveLocationMessage(
            surveyorId="SURV001",
            latitude=40.0,
            longitude=-73.0,
            timestamp="2024-05-01T12:00:00Z",
        )

        sample = LocationSample.from_message(message)

        assert sample.id is None
        assert sample.surveyor_id == "SURV001"
        assert sample.geom == "POINT(-73.0 40.0)"
        assert sample.timestamp == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)

    def test_wkt_is_lon_lat(self) -> None:
        assert to_wkt_point(latitude=10.5, longitude=20.25) == "POINT(20.25 10.5)"

    def test_sample_is_immutable(self) -> None:
        sample = LocationSample(
            surveyor_id="SURV001", latitude=1.0, longitude=2.0, timestamp=datetime.now(timezone.utc)
        )

        with pytest.raises(ValidationError):
            sample.latitude = 3.0

    def test_naive_timestamp_becomes_utc(self) -> None:
        sample = LocationSample(surveyor_id="S", latitude=0, longitude=0, timestamp=datetime(2024, 1, 1))

        assert sample.timestamp.tzinfo == timezone.utc


class TestPostgresTrackStore:

    @pytest.fixture
    def store(self, mock_db: AsyncMock) -> PostgresTrackStore:
        return PostgresTrackStore(mock_db)

    @pytest.mark.asyncio
    async def test_insert_returns_stored_row(
        self, store: PostgresTrackStore, mock_db: AsyncMock, sample_track_row: dict[str, Any]
    ) -> None:
        mock_db.fetchrow.return_value = sample_track_row
        sample = LocationSample(
            surveyor_id="SURV001",
            latitude=40.0,
            longitude=-73.0,
            timestamp=sample_track_row["timestamp"],
            geom="POINT(-73.0 40.0)",
        )

        stored = await store.insert(sample)

        assert stored.id == 7
        query, *args = mock_db.fetchrow.call_args.args
        assert "INSERT INTO location_tracks" in query
        assert "RETURNING" in query
        assert args == ["SURV001", 40.0, -73.0, sample.timestamp, "POINT(-73.0 40.0)"]

    @pytest.mark.asyncio
    async def test_insert_errors_propagate(self, store: PostgresTrackStore, mock_db: AsyncMock) -> None:
        mock_db.fetchrow.side_effect = ConnectionRefusedError("db down")

        with pytest.raises(ConnectionRefusedError):
            await store.insert(
                LocationSample(surveyor_id="S", latitude=0, longitude=0, timestamp=datetime.now(timezone.utc))
            )

    @pytest.mark.asyncio
    async def test_latest_orders_by_timestamp_then_id(
        self, store: PostgresTrackStore, mock_db: AsyncMock, sample_track_row: dict[str, Any]
    ) -> None:
        mock_db.fetchrow.return_value = sample_track_row

        latest = await store.latest("SURV001")

        assert latest.latitude == 40.0
        assert "ORDER BY timestamp DESC, id DESC" in mock_db.fetchrow.call_args.args[0]

    @pytest.mark.asyncio
    async def test_latest_none(self, store: PostgresTrackStore, mock_db: AsyncMock) -> None:
        mock_db.fetchrow.return_value = None

        assert await store.latest("SURV404") is None

    @pytest.mark.asyncio
    async def test_history_ascending(
        self, store: PostgresTrackStore, mock_db: AsyncMock, sample_track_row: dict[str, Any]
    ) -> None:
        mock_db.fetch.return_value = [sample_track_row, {**sample_track_row, "id": 8}]

        result = await store.history("SURV001")

        assert [s.id for s in result] == [7, 8]
        assert "ORDER BY timestamp ASC, id ASC" in mock_db.fetch.call_args.args[0]

    @pytest.mark.asyncio
    async def test_range_passes_bounds(self, store: PostgresTrackStore, mock_db: AsyncMock) -> None:
        start = datetime(2024, 5, 1, tzinfo=timezone.utc)
        end = start + timedelta(hours=1)

        assert await store.range("SURV001", start, end) == []
        query, *args = mock_db.fetch.call_args.args
        assert "BETWEEN $2 AND $3" in query
        assert args == ["SURV001", start, end]

    @pytest.mark.asyncio
    async def test_latest_timestamps(self, store: PostgresTrackStore, mock_db: AsyncMock) -> None:
        ts = datetime(2024, 5, 1, tzinfo=timezone.utc)
        mock_db.fetch.return_value = [{"surveyor_id": "SURV001", "last_ts": ts}]

        result = await store.latest_timestamps(["SURV001", "SURV002"])

        assert result == {"SURV001": ts}
        assert mock_db.fetch.call_args.args[1] == ["SURV001", "SURV002"]

    @pytest.mark.asyncio
    async def test_latest_timestamps_empty_skips_query(self, store: PostgresTrackStore, mock_db: AsyncMock) -> None:
        assert await store.latest_timestamps([]) == {}
        mock_db.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_count(self, store: PostgresTrackStore, mock_db: AsyncMock) -> None:
        mock_db.fetchval.return_value = 42

        assert await store.count() == 42
        assert "COUNT(*) FROM location_tracks" in mock_db.fetchval.call_args.args[0]
