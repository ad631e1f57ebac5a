# src/services/tracking_api/dependencies.py
"""
Dependency Injection для Tracking API.

Все компоненты создаются один раз при старте. PresenceClock
общий: один и тот же объект получают резолвер, сервис приёма
и справочник геодезистов.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from src.core.ingest.service import LocationIngestService
from src.core.presence import PresenceClock, PresenceResolver
from src.core.surveyors import BasicCredentialAuthenticator, SurveyorRepository, SurveyorService
from src.core.tracks import PostgresTrackStore, TrackHistoryService
from src.services.realtime_ws.fanout import LocationFanout
from src.services.realtime_ws.redis_relay import RedisRelay

if TYPE_CHECKING:
    from src.infra.database import DatabaseManager
    from src.infra.redis_client import RedisClient


# Синглтоны
_db: "DatabaseManager | None" = None
_redis: "RedisClient | None" = None
_clock: PresenceClock | None = None
_fanout: LocationFanout | None = None
_relay: RedisRelay | None = None
_track_store: PostgresTrackStore | None = None
_ingest_service: LocationIngestService | None = None
_history_service: TrackHistoryService | None = None
_surveyor_service: SurveyorService | None = None


async def init_dependencies(
    db: "DatabaseManager",
    redis: "RedisClient | None" = None,
    *,
    liveness_window_seconds: int = 300,
    enforce_identity: bool = True,
    subscriber_queue_size: int = 100,
) -> None:
    """
    Инициализировать зависимости при старте приложения.

    Если передан redis, включается межинстансная ретрансляция.
    """
    global _db, _redis, _clock, _fanout, _relay, _track_store
    global _ingest_service, _history_service, _surveyor_service

    _db = db
    _redis = redis
    _clock = PresenceClock()
    _fanout = LocationFanout(queue_size=subscriber_queue_size)
    _track_store = PostgresTrackStore(db)

    if redis is not None:
        _relay = RedisRelay(redis, _fanout)
        await _relay.start()

    repository = SurveyorRepository(db)
    authenticator = BasicCredentialAuthenticator(repository)
    resolver = PresenceResolver(
        _clock,
        _track_store,
        window=timedelta(seconds=liveness_window_seconds),
    )

    _ingest_service = LocationIngestService(
        authenticator=authenticator,
        clock=_clock,
        fanout=_fanout,
        tracks=_track_store,
        relay=_relay,
        enforce_identity=enforce_identity,
    )
    _history_service = TrackHistoryService(_track_store)
    _surveyor_service = SurveyorService(
        repository=repository,
        clock=_clock,
        resolver=resolver,
        authenticator=authenticator,
        enforce_identity=enforce_identity,
    )


def get_database() -> "DatabaseManager":
    """Получить менеджер БД."""
    if _db is None:
        raise RuntimeError("База данных не инициализирована. Вызовите init_dependencies()")
    return _db


def get_fanout() -> LocationFanout:
    """Получить реестр подписок."""
    if _fanout is None:
        raise RuntimeError("LocationFanout не инициализирован. Вызовите init_dependencies()")
    return _fanout


def get_redis_client() -> "RedisClient | None":
    """Клиент Redis или None, если ретрансляция выключена."""
    return _redis


def get_relay() -> RedisRelay | None:
    """Redis relay или None, если ретрансляция выключена."""
    return _relay


def get_track_store() -> PostgresTrackStore:
    if _track_store is None:
        raise RuntimeError("TrackStore не инициализирован. Вызовите init_dependencies()")
    return _track_store


def get_ingest_service() -> LocationIngestService:
    """Получить сервис приёма локаций."""
    if _ingest_service is None:
        raise RuntimeError("LocationIngestService не инициализирован. Вызовите init_dependencies()")
    return _ingest_service


def get_history_service() -> TrackHistoryService:
    """Получить сервис истории треков."""
    if _history_service is None:
        raise RuntimeError("TrackHistoryService не инициализирован. Вызовите init_dependencies()")
    return _history_service


def get_surveyor_service() -> SurveyorService:
    """Получить сервис геодезистов."""
    if _surveyor_service is None:
        raise RuntimeError("SurveyorService не инициализирован. Вызовите init_dependencies()")
    return _surveyor_service


async def cleanup_dependencies() -> None:
    """Очистить ресурсы при остановке приложения."""
    global _db, _redis, _clock, _fanout, _relay, _track_store
    global _ingest_service, _history_service, _surveyor_service

    if _ingest_service is not None:
        await _ingest_service.close()
    if _relay is not None:
        await _relay.stop()
    if _fanout is not None:
        await _fanout.close_all()

    _db = _redis = _clock = _fanout = _relay = _track_store = None
    _ingest_service = _history_service = _surveyor_service = None
