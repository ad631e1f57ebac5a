# src/core/tracks/models.py
"""
Модели данных треков.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.shared.models.location_dto import LiveLocationMessage, ensure_utc


def to_wkt_point(latitude: float, longitude: float) -> str:
    """WKT-представление точки. Порядок осей в WKT: долгота, широта."""
    return f"POINT({longitude} {latitude})"


class LocationSample(BaseModel):
    """Сохранённая точка трека (неизменяемая после записи)."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: Optional[int] = Field(None, description="Суррогатный ключ, назначается БД")
    surveyor_id: str = Field(..., description="ID геодезиста")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    timestamp: datetime = Field(..., description="Время события на устройстве (UTC)")
    geom: Optional[str] = Field(None, description="WKT-точка")

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @classmethod
    def from_message(cls, message: LiveLocationMessage) -> LocationSample:
        """Новая (ещё не сохранённая) точка из live-сообщения."""
        return cls(
            surveyor_id=message.surveyor_id,
            latitude=message.latitude,
            longitude=message.longitude,
            timestamp=message.timestamp,
            geom=to_wkt_point(message.latitude, message.longitude),
        )
