# src/shared/models/location_dto.py
"""
DTO геолокации: входящее live-сообщение и точка трека в ответах API.
На проводе поля в camelCase (surveyorId), в Python snake_case.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def ensure_utc(value: datetime) -> datetime:
    """Наивное время считается UTC, aware: приводится к UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LiveLocationMessage(BaseModel):
    """
    Live-обновление геолокации от мобильного клиента.

    timestamp: время события на устройстве, не время приёма сервером.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    surveyor_id: str = Field(..., alias="surveyorId", min_length=1, max_length=64)
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    timestamp: datetime

    @field_validator("surveyor_id")
    @classmethod
    def strip_surveyor_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("surveyorId не может быть пустым")
        return v

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    def to_payload(self) -> dict[str, Any]:
        """Сообщение для подписчиков (JSON-совместимый словарь)."""
        return self.model_dump(mode="json", by_alias=True)


class LocationSampleDTO(BaseModel):
    """Точка трека в ответе API."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int | None = None
    surveyor_id: str = Field(..., serialization_alias="surveyorId")
    latitude: float
    longitude: float
    timestamp: datetime
    geom: str | None = None


class IngestAckDTO(BaseModel):
    """Ответ на принятое live-обновление."""
    status: str = "accepted"
    surveyor_id: str = Field(..., serialization_alias="surveyorId")
    timestamp: datetime
    delivered: int = Field(0, description="Сколько локальных подписчиков получили обновление")
