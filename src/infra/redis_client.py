# src/infra/redis_client.py
"""
Клиент Redis.
Используется для Pub/Sub ретрансляции live-локаций между инстансами API.
"""

from __future__ import annotations

from typing import Any

import redis.asyncio as redis
from redis.asyncio.client import PubSub

from src.common.logger import log_error, log_info
from src.common.constants import TypeMsg


class RedisClient:
    """
    Асинхронный клиент Redis (Singleton).

    Поддерживает:
    - Публикацию в каналы с namespace
    - Создание PubSub-подписчиков
    - Health check
    """

    _instance: RedisClient | None = None
    _client: redis.Redis | None = None

    def __new__(cls) -> RedisClient:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._client = None
        self._namespace = "tracking"

    @property
    def client(self) -> redis.Redis:
        """Возвращает клиент Redis."""
        if self._client is None:
            raise RuntimeError("Redis клиент не инициализирован. Вызовите connect() сначала.")
        return self._client

    @property
    def namespace(self) -> str:
        return self._namespace

    def make_key(self, key: str) -> str:
        """Добавляет namespace к ключу или каналу."""
        return f"{self._namespace}:{key}"

    def strip_key(self, key: str) -> str:
        """Убирает namespace из ключа или канала."""
        prefix = f"{self._namespace}:"
        return key[len(prefix):] if key.startswith(prefix) else key

    async def connect(
        self,
        url: str,
        max_connections: int = 20,
        namespace: str = "tracking",
        socket_timeout: float = 5.0,
    ) -> None:
        """
        Подключается к Redis.

        Args:
            url: URL Redis
            max_connections: Максимальное количество соединений
            namespace: Префикс ключей и каналов
            socket_timeout: Таймаут операций с сокетом, сек
        """
        if self._client is not None:
            return

        self._namespace = namespace

        await log_info("Подключение к Redis...", type_msg=TypeMsg.INFO, logger_name="redis")

        self._client = redis.from_url(
            url,
            max_connections=max_connections,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        await self._client.ping()

        await log_info("Подключение к Redis установлено", type_msg=TypeMsg.INFO, logger_name="redis")

    async def disconnect(self) -> None:
        """Закрывает соединение с Redis."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            await log_info("Соединение с Redis закрыто", type_msg=TypeMsg.INFO, logger_name="redis")

    async def publish(self, channel: str, message: str) -> int:
        """
        Публикует сообщение в канал (с namespace).

        Returns:
            Количество получателей на стороне Redis
        """
        return await self.client.publish(self.make_key(channel), message)

    def pubsub(self) -> PubSub:
        """Создаёт новый PubSub-объект."""
        return self.client.pubsub()

    async def health_check(self) -> bool:
        """Проверяет доступность Redis."""
        try:
            return bool(await self.client.ping())
        except Exception as e:
            await log_error(f"Health check Redis failed: {e}", logger_name="redis")
            return False

    def get_stats(self) -> dict[str, Any]:
        return {
            "connected": self._client is not None,
            "namespace": self._namespace,
        }


def get_redis() -> RedisClient:
    """Возвращает глобальный экземпляр RedisClient."""
    return RedisClient()


async def init_redis() -> RedisClient:
    """Инициализирует подключение к Redis из конфигурации."""
    from src.config import settings

    client = get_redis()
    await client.connect(
        url=settings.redis.url,
        max_connections=settings.redis.REDIS_MAX_CONNECTIONS,
        namespace=settings.redis.REDIS_NAMESPACE,
    )
    return client


async def close_redis() -> None:
    """Закрывает подключение к Redis."""
    await get_redis().disconnect()
