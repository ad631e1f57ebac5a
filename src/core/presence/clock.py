# src/core/presence/clock.py
"""
Часы присутствия: время последней активности каждого геодезиста.

Живут только в памяти процесса. После рестарта все геодезисты
считаются неактивными до первого сигнала активности.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from src.common.constants import TrackingEvent, TypeMsg
from src.common.logger import log_event

NowSource = Callable[[], datetime]


def utc_now() -> datetime:
    """Текущее время (UTC, aware)."""
    return datetime.now(timezone.utc)


class PresenceClock:
    """
    Карта surveyor_id -> момент последней активности.

    Создаётся один раз на процесс и передаётся по ссылке
    в резолвер, сервис приёма и справочник геодезистов.

    Конкурентность: запись и чтение это одна операция над dict
    (атомарна в CPython), общей блокировки нет, поэтому touch()
    разных id друг друга не ждут, а last_activity() видит значение
    последнего завершённого touch().

    Вытеснения нет: размер ограничен числом геодезистов.
    """

    def __init__(self, now: NowSource = utc_now) -> None:
        self._now = now
        self._last_activity: dict[str, datetime] = {}

    def touch(self, surveyor_id: str) -> datetime:
        """Записывает «сейчас» как последнюю активность (перезаписывает прежнее)."""
        instant = self._now()
        self._last_activity[surveyor_id] = instant
        log_event(
            TrackingEvent.PRESENCE_TOUCHED,
            f"Активность геодезиста {surveyor_id}",
            type_msg=TypeMsg.DEBUG,
            logger_name="presence",
            surveyor_id=surveyor_id,
            at=instant.isoformat(),
        )
        return instant

    def last_activity(self, surveyor_id: str) -> datetime | None:
        """Последний зафиксированный момент активности или None."""
        return self._last_activity.get(surveyor_id)

    def snapshot(self) -> dict[str, datetime]:
        """Копия всей карты (для пакетного расчёта статусов)."""
        return dict(self._last_activity)

    def __len__(self) -> int:
        return len(self._last_activity)

    def __contains__(self, surveyor_id: object) -> bool:
        return surveyor_id in self._last_activity
