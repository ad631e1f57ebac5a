# src/services/realtime_ws/redis_relay.py
"""
Ретрансляция live-локаций между инстансами через Redis Pub/Sub.

Каналы: {namespace}:location:surveyor:{surveyor_id}
Сообщение: {"origin": <instance_id>, "payload": {...}}

Свои сообщения игнорируются: локальным подписчикам они уже
доставлены напрямую через LocationFanout.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from typing import Any

from src.common.constants import LOCATION_CHANNEL_PREFIX, TypeMsg
from src.common.logger import log_error, log_info
from src.infra.redis_client import RedisClient
from src.services.realtime_ws.fanout import LocationFanout


def _decode(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value or ""


class RedisRelay:
    """
    Публикатор и подписчик Redis для LocationFanout.
    """

    def __init__(
        self,
        redis: RedisClient,
        fanout: LocationFanout,
        instance_id: str | None = None,
    ) -> None:
        """
        Args:
            redis: Клиент Redis (namespace берётся из него)
            fanout: Локальный реестр подписок
            instance_id: Идентификатор инстанса (по умолчанию случайный)
        """
        self._redis = redis
        self._fanout = fanout
        self.instance_id = instance_id or uuid.uuid4().hex
        self._pubsub = None
        self._task: asyncio.Task | None = None
        self._running = False

        self._relayed_in: int = 0
        self._published_out: int = 0

    async def publish(self, surveyor_id: str, payload: dict[str, Any]) -> int:
        """Публикует обновление для остальных инстансов."""
        message = json.dumps({"origin": self.instance_id, "payload": payload})
        receivers = await self._redis.publish(f"{LOCATION_CHANNEL_PREFIX}{surveyor_id}", message)
        self._published_out += 1
        return receivers

    async def start(self) -> None:
        """Запустить подписчика."""
        if self._running:
            return

        self._pubsub = self._redis.pubsub()
        await self._pubsub.psubscribe(self._redis.make_key(f"{LOCATION_CHANNEL_PREFIX}*"))
        self._running = True
        self._task = asyncio.create_task(self._listen())

        await log_info(
            f"Redis relay запущен (instance={self.instance_id})",
            type_msg=TypeMsg.INFO,
            logger_name="redis_relay",
        )

    async def stop(self) -> None:
        """Остановить подписчика."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._pubsub:
            await self._pubsub.punsubscribe()
            await self._pubsub.aclose()
            self._pubsub = None

    async def _listen(self) -> None:
        """Слушать сообщения из Redis."""
        while self._running:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0,
                )
                if message is None:
                    continue
                await self._process_message(message)
            except asyncio.CancelledError:
                break
            except Exception as e:
                # Логируем ошибку, но продолжаем работу
                await log_error(f"Ошибка Redis relay: {e}", logger_name="redis_relay")
                await asyncio.sleep(1)

    async def _process_message(self, message: dict[str, Any]) -> None:
        """Переслать чужое сообщение в локальный fan-out."""
        if message.get("type") not in ("message", "pmessage"):
            return

        channel = self._redis.strip_key(_decode(message.get("channel")))
        if not channel.startswith(LOCATION_CHANNEL_PREFIX):
            return
        surveyor_id = channel[len(LOCATION_CHANNEL_PREFIX):]

        try:
            envelope = json.loads(_decode(message.get("data")))
        except json.JSONDecodeError:
            await log_error(f"Некорректное сообщение в канале {channel}", logger_name="redis_relay")
            return

        if not isinstance(envelope, dict) or envelope.get("origin") == self.instance_id:
            return

        payload = envelope.get("payload")
        if isinstance(payload, dict):
            self._fanout.publish(surveyor_id, payload)
            self._relayed_in += 1

    def get_stats(self) -> dict[str, Any]:
        return {
            "instance_id": self.instance_id,
            "running": self._running,
            "published_out": self._published_out,
            "relayed_in": self._relayed_in,
            "redis": self._redis.get_stats(),
        }
