# src/shared/models/surveyor_dto.py
"""
DTO справочника геодезистов: ответы API, запрос на создание/обновление, вход.
На проводе projectName в camelCase.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SurveyorDTO(BaseModel):
    """Геодезист в ответах API. Пароль и его хэш наружу не отдаются."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str
    name: str
    city: Optional[str] = None
    project_name: Optional[str] = Field(None, alias="projectName")
    username: Optional[str] = None
    online: bool = False


class SurveyorUpsertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1)
    city: Optional[str] = None
    project_name: Optional[str] = Field(None, alias="projectName")
    username: Optional[str] = None
    # Открытый пароль; в БД хранится только хэш
    password: Optional[str] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    success: bool
    message: str
    surveyor: Optional[SurveyorDTO] = None


class UsernameAvailability(BaseModel):
    available: bool
