# src/core/surveyors/models.py
"""
Модели данных геодезистов.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.shared.models.surveyor_dto import SurveyorDTO, SurveyorUpsertRequest


class Surveyor(BaseModel):
    """Запись справочника геодезистов."""

    id: str = Field(..., description="Бизнес-идентификатор, напр. SURV001")
    name: str = Field(..., description="ФИО")
    city: Optional[str] = Field(None, description="Город")
    project_name: Optional[str] = Field(None, description="Проект")
    username: Optional[str] = Field(None, description="Логин")
    password_hash: Optional[str] = Field(None, description="Хэш пароля (passlib)", repr=False)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_request(cls, request: SurveyorUpsertRequest, password_hash: Optional[str] = None) -> Surveyor:
        """Запись из запроса на создание/обновление (пароль уже захэширован)."""
        return cls(
            id=request.id,
            name=request.name,
            city=request.city,
            project_name=request.project_name,
            username=request.username,
            password_hash=password_hash,
        )

    def to_dto(self, online: bool = False) -> SurveyorDTO:
        """Публичное представление (без хэша пароля)."""
        return SurveyorDTO(
            id=self.id,
            name=self.name,
            city=self.city,
            project_name=self.project_name,
            username=self.username,
            online=online,
        )

