# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import base64
import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable
from unittest.mock import AsyncMock, MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("REDIS_PASSWORD", "")

from src.core.presence.clock import PresenceClock
from src.core.tracks.models import LocationSample


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_system": "test",
        "PROJECT_NAME": "surveyor_tracking_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "LOG_LEVEL": "DEBUG",
        "ENVIRONMENT": "test",
        "TRACKING_API_HOST": "127.0.0.1",
        "TRACKING_API_PORT": 9090,
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "LOG_FORMAT": "json",
        "DB_HOST": "db.test",
        "DB_PORT": 5433,
        "DB_NAME": "surveyor_tracking_test",
        "DB_USER": "tester",
        "DB_MIN_POOL_SIZE": 1,
        "DB_MAX_POOL_SIZE": 3,
        "DB_COMMAND_TIMEOUT": 10,
        "DB_RETRY_ATTEMPTS": 2,
        "DB_RETRY_DELAY": 0.5,
        "REDIS_HOST": "redis.test",
        "REDIS_PORT": 6380,
        "REDIS_DB": 1,
        "REDIS_NAMESPACE": "tracking_test",
        "REDIS_MAX_CONNECTIONS": 5,
        "LIVENESS_WINDOW_SECONDS": 120,
        "ENFORCE_SURVEYOR_IDENTITY": False,
        "SUBSCRIBER_QUEUE_SIZE": 10,
        "REDIS_RELAY_ENABLED": True,
        "SEED_SAMPLE_SURVEYORS": False,
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Создаёт временный файл конфигурации."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config, ensure_ascii=False, indent=2))
    return config_file


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок менеджера базы данных."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock(return_value=None)
    return db


@pytest.fixture
def mock_redis() -> MagicMock:
    """Мок RedisClient (namespace tracking)."""
    redis = MagicMock()
    redis.publish = AsyncMock(return_value=1)
    redis.make_key = lambda key: f"tracking:{key}"
    redis.strip_key = lambda key: key[len("tracking:"):] if key.startswith("tracking:") else key
    return redis


# =============================================================================
# ФЕЙКИ ДОМЕНА
# =============================================================================

class FakeTrackStore:
    """
    Хранилище треков в памяти с той же семантикой, что и PostgresTrackStore.
    """

    def __init__(self) -> None:
        self.samples: list[LocationSample] = []
        self.fail_insert: Exception | None = None
        self.latest_calls = 0
        self._next_id = 1

    def add(self, sample: LocationSample) -> LocationSample:
        """Синхронная вставка для подготовки данных в фикстурах."""
        stored = sample.model_copy(update={"id": self._next_id})
        self._next_id += 1
        self.samples.append(stored)
        return stored

    async def insert(self, sample: LocationSample) -> LocationSample:
        if self.fail_insert is not None:
            raise self.fail_insert
        return self.add(sample)

    def _ordered(self, surveyor_id: str) -> list[LocationSample]:
        own = [s for s in self.samples if s.surveyor_id == surveyor_id]
        return sorted(own, key=lambda s: (s.timestamp, s.id))

    async def latest(self, surveyor_id: str) -> LocationSample | None:
        self.latest_calls += 1
        ordered = self._ordered(surveyor_id)
        return ordered[-1] if ordered else None

    async def history(self, surveyor_id: str) -> list[LocationSample]:
        return self._ordered(surveyor_id)

    async def range(self, surveyor_id: str, start: datetime, end: datetime) -> list[LocationSample]:
        return [s for s in self._ordered(surveyor_id) if start <= s.timestamp <= end]

    async def latest_timestamps(self, surveyor_ids: Iterable[str]) -> dict[str, datetime]:
        result: dict[str, datetime] = {}
        for sid in surveyor_ids:
            ordered = self._ordered(sid)
            if ordered:
                result[sid] = ordered[-1].timestamp
        return result

    async def count(self) -> int:
        return len(self.samples)


class FakeAuthenticator:
    """Authenticator по словарю credential -> surveyor_id."""

    def __init__(self, credentials: dict[str, str] | None = None) -> None:
        self.credentials = credentials or {}

    async def verify(self, credential: str | None) -> str | None:
        if credential is None:
            return None
        return self.credentials.get(credential)


class MutableNow:
    """Управляемый источник времени."""

    def __init__(self, value: datetime) -> None:
        self.value = value

    def __call__(self) -> datetime:
        return self.value


def _basic_header(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return f"Basic {token}"


@pytest.fixture
def make_basic_header():
    """Фабрика заголовков Authorization: Basic."""
    return _basic_header


@pytest.fixture
def base_time() -> datetime:
    return datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now_source(base_time: datetime) -> MutableNow:
    return MutableNow(base_time)


@pytest.fixture
def clock(now_source: MutableNow) -> PresenceClock:
    return PresenceClock(now=now_source)


@pytest.fixture
def track_store() -> FakeTrackStore:
    return FakeTrackStore()


@pytest.fixture
def surv001_credential() -> str:
    return _basic_header("john_smith", "password123")


@pytest.fixture
def authenticator(surv001_credential: str) -> FakeAuthenticator:
    return FakeAuthenticator({surv001_credential: "SURV001"})


@pytest.fixture
def sample_surveyor_row() -> dict[str, Any]:
    """Строка таблицы surveyors."""
    return {
        "id": "SURV001",
        "name": "John Smith",
        "city": "New York",
        "project_name": "CityMapping",
        "username": "john_smith",
        "password_hash": None,
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }


@pytest.fixture
def sample_track_row() -> dict[str, Any]:
    """Строка таблицы location_tracks."""
    return {
        "id": 7,
        "surveyor_id": "SURV001",
        "latitude": 40.0,
        "longitude": -73.0,
        "timestamp": datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc),
        "geom": "POINT(-73.0 40.0)",
    }
