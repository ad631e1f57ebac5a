# src/core/ingest/service.py
"""
Приём live-локаций.

Порядок шагов:
1. Аутентификация (UnauthorizedError, без изменений состояния)
2. Валидация (InvalidInputError, без изменений состояния)
3. Проверка, что геодезист шлёт данные за себя (IdentityMismatchError)
4. Отметка активности в PresenceClock
5. Рассылка подписчикам (до записи в БД, не зависит от её успеха);
   ретрансляция в Redis уходит фоновой задачей и запись не ждёт
6. Запись точки в хранилище (StoreFailureError, рассылка не откатывается)
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, NoReturn, Protocol

from pydantic import ValidationError

from src.common.constants import TrackingEvent, TypeMsg
from src.common.logger import log_event
from src.core.ingest.errors import (
    IdentityMismatchError,
    IngestError,
    InvalidInputError,
    StoreFailureError,
    UnauthorizedError,
)
from src.core.presence.clock import PresenceClock
from src.core.surveyors.auth import Authenticator
from src.core.tracks.models import LocationSample
from src.core.tracks.store import TrackStore
from src.shared.models.location_dto import IngestAckDTO, LiveLocationMessage


class Broadcaster(Protocol):
    """Локальная рассылка (LocationFanout)."""

    def publish(self, surveyor_id: str, payload: dict[str, Any]) -> int:
        ...


class Relay(Protocol):
    """Межинстансная ретрансляция (RedisRelay)."""

    async def publish(self, surveyor_id: str, payload: dict[str, Any]) -> int:
        ...


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "payload"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)


class LocationIngestService:
    """Сервис приёма live-обновлений геолокации."""

    def __init__(
        self,
        authenticator: Authenticator,
        clock: PresenceClock,
        fanout: Broadcaster,
        tracks: TrackStore,
        relay: Relay | None = None,
        enforce_identity: bool = True,
    ) -> None:
        self._authenticator = authenticator
        self._clock = clock
        self._fanout = fanout
        self._tracks = tracks
        self._relay = relay
        self._enforce_identity = enforce_identity
        self._relay_tasks: set[asyncio.Task] = set()

        self._accepted: int = 0
        self._rejected: int = 0
        self._store_failures: int = 0

    async def ingest(
        self,
        payload: LiveLocationMessage | Mapping[str, Any],
        credential: str | None,
    ) -> IngestAckDTO:
        """
        Принять одно обновление.

        Args:
            payload: Сырое тело запроса или уже разобранное сообщение
            credential: Значение заголовка Authorization

        Returns:
            Подтверждение с числом локальных получателей

        Raises:
            UnauthorizedError, InvalidInputError, IdentityMismatchError:
                обновление отклонено, состояние не изменено
            StoreFailureError: рассылка выполнена, но точка не сохранена
        """
        caller = await self._authenticator.verify(credential)
        if caller is None:
            self._reject(UnauthorizedError("Invalid credentials"))

        message = self._validate(payload)

        if self._enforce_identity and message.surveyor_id != caller:
            self._reject(
                IdentityMismatchError(
                    f"Authenticated as {caller}, cannot report location for {message.surveyor_id}",
                    surveyor_id=message.surveyor_id,
                )
            )

        self._clock.touch(caller)

        outgoing = message.to_payload()
        delivered = self._fanout.publish(message.surveyor_id, outgoing)
        self._schedule_relay(message.surveyor_id, outgoing)

        try:
            sample = await self._tracks.insert(LocationSample.from_message(message))
        except Exception as e:
            self._store_failures += 1
            log_event(
                TrackingEvent.LOCATION_STORE_FAILED,
                f"Точка {message.surveyor_id} не сохранена: {e}",
                type_msg=TypeMsg.ERROR,
                logger_name="ingest",
                surveyor_id=message.surveyor_id,
                delivered=delivered,
            )
            raise StoreFailureError(
                "Location was broadcast but could not be stored",
                surveyor_id=message.surveyor_id,
            ) from e

        self._accepted += 1
        log_event(
            TrackingEvent.LOCATION_INGESTED,
            f"Принята точка {message.surveyor_id}",
            type_msg=TypeMsg.DEBUG,
            logger_name="ingest",
            surveyor_id=message.surveyor_id,
            caller_id=caller,
            sample_id=sample.id,
            delivered=delivered,
        )
        return IngestAckDTO(
            surveyor_id=message.surveyor_id,
            timestamp=message.timestamp,
            delivered=delivered,
        )

    def _validate(self, payload: LiveLocationMessage | Mapping[str, Any]) -> LiveLocationMessage:
        if isinstance(payload, LiveLocationMessage):
            return payload
        if not isinstance(payload, Mapping):
            self._reject(InvalidInputError("Payload must be a JSON object"))
        try:
            return LiveLocationMessage.model_validate(payload)
        except ValidationError as e:
            self._reject(InvalidInputError(_describe_validation_error(e)))

    def _reject(self, error: IngestError) -> NoReturn:
        self._rejected += 1
        log_event(
            TrackingEvent.LOCATION_REJECTED,
            f"Обновление отклонено ({error.code}): {error.message}",
            type_msg=TypeMsg.WARNING,
            logger_name="ingest",
            reason=error.code,
            surveyor_id=error.surveyor_id,
        )
        raise error

    def _schedule_relay(self, surveyor_id: str, payload: dict[str, Any]) -> None:
        if self._relay is None:
            return
        task = asyncio.create_task(self._relay_publish(surveyor_id, payload))
        self._relay_tasks.add(task)
        task.add_done_callback(self._relay_tasks.discard)

    async def _relay_publish(self, surveyor_id: str, payload: dict[str, Any]) -> None:
        try:
            await self._relay.publish(surveyor_id, payload)
        except Exception as e:
            log_event(
                TrackingEvent.RELAY_PUBLISH_FAILED,
                f"Не удалось ретранслировать точку {surveyor_id}: {e}",
                type_msg=TypeMsg.WARNING,
                logger_name="ingest",
                surveyor_id=surveyor_id,
            )

    def get_stats(self) -> dict[str, Any]:
        return {
            "accepted": self._accepted,
            "rejected": self._rejected,
            "store_failures": self._store_failures,
        }

    async def flush_relay(self) -> None:
        """Дождаться уже запущенных ретрансляций."""
        if self._relay_tasks:
            await asyncio.gather(*self._relay_tasks, return_exceptions=True)

    async def close(self) -> None:
        """Отменить незавершённые ретрансляции (при остановке сервиса)."""
        for task in list(self._relay_tasks):
            task.cancel()
        await self.flush_relay()
