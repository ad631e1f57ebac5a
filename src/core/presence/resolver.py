# src/core/presence/resolver.py
"""
Вычисление онлайн-статуса геодезиста.

Геодезист онлайн, если за последние LIVENESS_WINDOW_SECONDS
(по умолчанию 5 минут) было хотя бы одно из двух:
- сигнал активности в PresenceClock;
- точка трека с timestamp внутри окна.

Граница включительная: ровно 5 минут назад: ещё онлайн.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from src.core.presence.clock import NowSource, PresenceClock, utc_now
from src.core.tracks.store import TrackStore
from src.shared.models.location_dto import ensure_utc

DEFAULT_LIVENESS_WINDOW = timedelta(minutes=5)


class PresenceResolver:
    """Резолвер присутствия: OR двух сигналов внутри окна."""

    def __init__(
        self,
        clock: PresenceClock,
        tracks: TrackStore,
        window: timedelta = DEFAULT_LIVENESS_WINDOW,
        now: NowSource = utc_now,
    ) -> None:
        self._clock = clock
        self._tracks = tracks
        self._window = window
        self._now = now

    @property
    def window(self) -> timedelta:
        return self._window

    def _within(self, instant: datetime | None, threshold: datetime) -> bool:
        return instant is not None and ensure_utc(instant) >= threshold

    async def is_online(self, surveyor_id: str, now: datetime | None = None) -> bool:
        """
        Онлайн-статус одного геодезиста.

        Часы проверяются первыми: если они уже дают ответ,
        хранилище треков не трогается. Ошибки хранилища пробрасываются.
        """
        threshold = ensure_utc(now or self._now()) - self._window

        if self._within(self._clock.last_activity(surveyor_id), threshold):
            return True

        latest = await self._tracks.latest(surveyor_id)
        return latest is not None and self._within(latest.timestamp, threshold)

    async def all_statuses(
        self,
        surveyor_ids: Iterable[str],
        now: datetime | None = None,
    ) -> dict[str, bool]:
        """
        Статусы пачки геодезистов.

        Один и тот же now для всех id, поэтому результат согласован
        внутри вызова. Хранилище запрашивается одним запросом
        и только для тех, кого часы не подтвердили.
        """
        ids = list(dict.fromkeys(surveyor_ids))
        threshold = ensure_utc(now or self._now()) - self._window
        activity = self._clock.snapshot()

        statuses = {sid: self._within(activity.get(sid), threshold) for sid in ids}
        unresolved = [sid for sid, online in statuses.items() if not online]
        if unresolved:
            latest = await self._tracks.latest_timestamps(unresolved)
            for sid in unresolved:
                statuses[sid] = self._within(latest.get(sid), threshold)
        return statuses
