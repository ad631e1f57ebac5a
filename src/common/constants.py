# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class SurveyorStatus(str, Enum):
    """Статус присутствия геодезиста (для отображения)."""
    ONLINE = "Online"
    OFFLINE = "Offline"

    @classmethod
    def from_flag(cls, online: bool) -> "SurveyorStatus":
        """Преобразует булев вердикт резолвера в статус."""
        return cls.ONLINE if online else cls.OFFLINE


class TrackingEvent(str, Enum):
    """Имена структурированных событий трекинга (поле event в логах)."""
    LOCATION_INGESTED = "location_ingested"
    LOCATION_REJECTED = "location_rejected"
    LOCATION_STORE_FAILED = "location_store_failed"
    PRESENCE_TOUCHED = "presence_touched"
    SUBSCRIBER_DROPPED = "subscriber_dropped"
    RELAY_PUBLISH_FAILED = "relay_publish_failed"


# Префикс каналов Redis для межинстансной ретрансляции
LOCATION_CHANNEL_PREFIX = "location:surveyor:"
