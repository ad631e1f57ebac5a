# src/core/tracks/store.py
"""
Контракт хранилища треков.

Структурный интерфейс: сервисы зависят от него, а не от asyncpg,
поэтому в тестах достаточно передать объект с теми же методами.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Protocol

from src.core.tracks.models import LocationSample


class TrackStore(Protocol):
    """
    Журнал точек трека (только добавление).

    Все выборки упорядочены по timestamp, при равенстве по id.
    Ошибки бэкенда пробрасываются вызывающему.
    """

    async def insert(self, sample: LocationSample) -> LocationSample:
        """Добавляет точку и возвращает её с назначенным id."""
        ...

    async def latest(self, surveyor_id: str) -> LocationSample | None:
        """Точка с максимальным timestamp или None."""
        ...

    async def history(self, surveyor_id: str) -> list[LocationSample]:
        """Вся история геодезиста."""
        ...

    async def range(
        self,
        surveyor_id: str,
        start: datetime,
        end: datetime,
    ) -> list[LocationSample]:
        """Точки с start <= timestamp <= end."""
        ...

    async def latest_timestamps(self, surveyor_ids: Iterable[str]) -> dict[str, datetime]:
        """Максимальный timestamp по каждому id (без точек: ключа нет)."""
        ...
