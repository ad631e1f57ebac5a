# src/services/realtime_ws/fanout.py
"""
Рассылка live-локаций подписчикам.

Канал = surveyor_id. У каждой подписки своя ограниченная очередь,
поэтому publish() никогда не ждёт подписчика: переполненная
подписка закрывается и снимается, остальные не затрагиваются.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from src.common.constants import TrackingEvent, TypeMsg
from src.common.logger import log_event

DEFAULT_QUEUE_SIZE = 100

# Маркер закрытия в очереди подписки
_CLOSED = object()

_ids = itertools.count(1)


@dataclass(eq=False)
class Subscription:
    """
    Хэндл подписки на канал одного геодезиста.

    Читается через `await sub.get()` или `async for payload in sub`.
    После close() итерация завершается.
    """
    surveyor_id: str
    maxsize: int = DEFAULT_QUEUE_SIZE
    id: int = field(default_factory=lambda: next(_ids))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    delivered: int = 0
    _queue: asyncio.Queue = field(init=False, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        # +1 место под маркер закрытия
        self._queue = asyncio.Queue(maxsize=self.maxsize + 1)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Сколько сообщений ждёт чтения."""
        return self._queue.qsize()

    def offer(self, payload: dict[str, Any]) -> bool:
        """
        Кладёт сообщение без ожидания.

        Returns:
            False если подписка закрыта или очередь заполнена
        """
        if self._closed or self._queue.qsize() >= self.maxsize:
            return False
        self._queue.put_nowait(payload)
        self.delivered += 1
        return True

    def close(self) -> None:
        """Закрывает подписку: недочитанное отбрасывается, читатель просыпается."""
        if self._closed:
            return
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def get(self) -> dict[str, Any] | None:
        """Следующее сообщение или None после закрытия."""
        item = await self._queue.get()
        if item is _CLOSED:
            # Оставляем маркер для повторных вызовов
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> dict[str, Any]:
        item = await self.get()
        if item is None:
            raise StopAsyncIteration
        return item


class LocationFanout:
    """
    Реестр подписок по surveyor_id.

    Поддерживает:
    - Подписку/отписку в любой момент
    - publish() по снимку подписчиков на момент вызова
    - Порядок доставки = порядок вызовов publish() для канала
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        # surveyor_id -> подписки
        self._channels: dict[str, set[Subscription]] = {}
        self._queue_size = queue_size

        # Для статистики
        self._total_published: int = 0
        self._total_delivered: int = 0
        self._total_dropped: int = 0

    @property
    def active_subscriptions(self) -> int:
        return sum(len(subs) for subs in self._channels.values())

    def subscribe(self, surveyor_id: str) -> Subscription:
        """Новая подписка. Сообщения, опубликованные раньше, не приходят."""
        subscription = Subscription(surveyor_id=surveyor_id, maxsize=self._queue_size)
        self._channels.setdefault(surveyor_id, set()).add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Снимает подписку и закрывает её. Повторный вызов безопасен."""
        subs = self._channels.get(subscription.surveyor_id)
        if subs is not None:
            subs.discard(subscription)
            if not subs:
                del self._channels[subscription.surveyor_id]
        subscription.close()

    def publish(self, surveyor_id: str, payload: dict[str, Any]) -> int:
        """
        Отправить сообщение всем текущим подписчикам канала.

        Returns:
            Количество подписчиков, получивших сообщение
        """
        self._total_published += 1
        snapshot = tuple(self._channels.get(surveyor_id, ()))

        delivered = 0
        for subscription in snapshot:
            if subscription.offer(payload):
                delivered += 1
                continue
            if subscription.closed:
                # Успели отписаться между снимком и доставкой
                continue
            self._drop(subscription)

        self._total_delivered += delivered
        return delivered

    def _drop(self, subscription: Subscription) -> None:
        self._total_dropped += 1
        self.unsubscribe(subscription)
        log_event(
            TrackingEvent.SUBSCRIBER_DROPPED,
            f"Подписчик {subscription.id} канала {subscription.surveyor_id} отключён: очередь переполнена",
            type_msg=TypeMsg.WARNING,
            logger_name="fanout",
            surveyor_id=subscription.surveyor_id,
            subscription_id=subscription.id,
        )

    def get_subscribers(self, surveyor_id: str) -> set[Subscription]:
        return set(self._channels.get(surveyor_id, ()))

    async def close_all(self) -> None:
        """Закрыть все подписки (при остановке сервиса)."""
        for subs in list(self._channels.values()):
            for subscription in list(subs):
                self.unsubscribe(subscription)

    def get_stats(self) -> dict[str, Any]:
        return {
            "active_subscriptions": self.active_subscriptions,
            "channels": len(self._channels),
            "total_published": self._total_published,
            "total_delivered": self._total_delivered,
            "total_dropped": self._total_dropped,
        }
