# src/core/tracks/history.py
"""
Сервис чтения истории треков.
"""

from __future__ import annotations

from datetime import datetime

from src.core.tracks.models import LocationSample
from src.core.tracks.store import TrackStore
from src.shared.models.location_dto import ensure_utc


class TrackHistoryService:
    """Только чтение: последняя точка и выборка по интервалу."""

    def __init__(self, tracks: TrackStore) -> None:
        self._tracks = tracks

    async def latest(self, surveyor_id: str) -> LocationSample | None:
        return await self._tracks.latest(surveyor_id)

    async def range(
        self,
        surveyor_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[LocationSample]:
        """
        Трек за интервал [start, end] включительно.

        Фильтр применяется только если заданы обе границы.
        Если задана одна или ни одной, возвращается вся история
        (одна граница игнорируется, а не трактуется как открытый интервал).
        При start > end результат пустой.
        """
        if start is None or end is None:
            return await self._tracks.history(surveyor_id)

        start, end = ensure_utc(start), ensure_utc(end)
        if start > end:
            return []
        return await self._tracks.range(surveyor_id, start, end)
