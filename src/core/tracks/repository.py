# src/core/tracks/repository.py
"""
Репозиторий треков в PostgreSQL.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from asyncpg import Record

from src.core.tracks.models import LocationSample
from src.infra.database import DatabaseManager

_COLUMNS = "id, surveyor_id, latitude, longitude, timestamp, geom"


def _to_sample(row: Record) -> LocationSample:
    return LocationSample(
        id=row["id"],
        surveyor_id=row["surveyor_id"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        timestamp=row["timestamp"],
        geom=row["geom"],
    )


class PostgresTrackStore:
    """
    Хранилище треков поверх DatabaseManager.

    В отличие от справочника, ошибки не глушатся: сервис приёма
    превращает их в StoreFailureError, а HTTP-слой в 503.
    """

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def insert(self, sample: LocationSample) -> LocationSample:
        row = await self._db.fetchrow(
            f"""
            INSERT INTO location_tracks (surveyor_id, latitude, longitude, timestamp, geom)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING {_COLUMNS}
            """,
            sample.surveyor_id,
            sample.latitude,
            sample.longitude,
            sample.timestamp,
            sample.geom,
        )
        return _to_sample(row)

    async def latest(self, surveyor_id: str) -> LocationSample | None:
        row = await self._db.fetchrow(
            f"""
            SELECT {_COLUMNS}
            FROM location_tracks
            WHERE surveyor_id = $1
            ORDER BY timestamp DESC, id DESC
            LIMIT 1
            """,
            surveyor_id,
        )
        return _to_sample(row) if row is not None else None

    async def history(self, surveyor_id: str) -> list[LocationSample]:
        rows = await self._db.fetch(
            f"""
            SELECT {_COLUMNS}
            FROM location_tracks
            WHERE surveyor_id = $1
            ORDER BY timestamp ASC, id ASC
            """,
            surveyor_id,
        )
        return [_to_sample(r) for r in rows]

    async def range(
        self,
        surveyor_id: str,
        start: datetime,
        end: datetime,
    ) -> list[LocationSample]:
        rows = await self._db.fetch(
            f"""
            SELECT {_COLUMNS}
            FROM location_tracks
            WHERE surveyor_id = $1
              AND timestamp BETWEEN $2 AND $3
            ORDER BY timestamp ASC, id ASC
            """,
            surveyor_id,
            start,
            end,
        )
        return [_to_sample(r) for r in rows]

    async def latest_timestamps(self, surveyor_ids: Iterable[str]) -> dict[str, datetime]:
        ids = list(surveyor_ids)
        if not ids:
            return {}
        rows = await self._db.fetch(
            """
            SELECT surveyor_id, MAX(timestamp) AS last_ts
            FROM location_tracks
            WHERE surveyor_id = ANY($1::varchar[])
            GROUP BY surveyor_id
            """,
            ids,
        )
        return {r["surveyor_id"]: r["last_ts"] for r in rows}

    async def count(self) -> int:
        """Общее число точек (для /stats)."""
        return await self._db.fetchval("SELECT COUNT(*) FROM location_tracks")
