# src/services/tracking_api/routes.py
"""
REST endpoints Tracking API.

Ошибки приёма (IngestError) и UsernameTakenError превращаются
в HTTP-ответы обработчиками в app.py.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from src.common.constants import SurveyorStatus
from src.core.ingest.service import LocationIngestService
from src.core.surveyors.service import SurveyorService
from src.core.tracks.history import TrackHistoryService
from src.services.tracking_api.dependencies import (
    get_history_service,
    get_ingest_service,
    get_surveyor_service,
)
from src.shared.models.location_dto import IngestAckDTO, LocationSampleDTO
from src.shared.models.surveyor_dto import (
    LoginRequest,
    LoginResponse,
    SurveyorDTO,
    SurveyorUpsertRequest,
    UsernameAvailability,
)

router = APIRouter(prefix="/api")


# === LIVE LOCATION ===

@router.post(
    "/live/location",
    response_model=IngestAckDTO,
    status_code=status.HTTP_202_ACCEPTED,
    tags=["Location"],
)
async def publish_live_location(
    request: Request,
    service: LocationIngestService = Depends(get_ingest_service),
) -> IngestAckDTO:
    """
    Принять live-обновление от геодезиста.

    Требует заголовок `Authorization: Basic ...`. Тело разбирается
    после аутентификации, поэтому неавторизованный запрос с битым
    телом получает 401, а не 400.
    """
    credential = request.headers.get("Authorization")
    try:
        payload: Any = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        payload = None
    return await service.ingest(payload, credential)


@router.get("/location/{surveyor_id}/latest", response_model=LocationSampleDTO, tags=["Location"])
async def get_latest_location(
    surveyor_id: str,
    service: TrackHistoryService = Depends(get_history_service),
) -> LocationSampleDTO:
    """Последняя известная точка геодезиста."""
    sample = await service.latest(surveyor_id)
    if sample is None:
        raise HTTPException(status_code=404, detail=f"No location recorded for {surveyor_id}")
    return LocationSampleDTO.model_validate(sample, from_attributes=True)


@router.get("/location/{surveyor_id}/track", response_model=list[LocationSampleDTO], tags=["Location"])
async def get_track_history(
    surveyor_id: str,
    start: datetime | None = Query(default=None, description="Начало интервала (ISO 8601)"),
    end: datetime | None = Query(default=None, description="Конец интервала (ISO 8601)"),
    service: TrackHistoryService = Depends(get_history_service),
) -> list[LocationSampleDTO]:
    """
    Трек геодезиста.

    Интервал применяется только если заданы и start, и end;
    иначе возвращается вся история.
    """
    samples = await service.range(surveyor_id, start, end)
    return [LocationSampleDTO.model_validate(s, from_attributes=True) for s in samples]


# === SURVEYORS ===

@router.get("/surveyors", response_model=list[SurveyorDTO], tags=["Surveyors"])
async def list_surveyors(
    service: SurveyorService = Depends(get_surveyor_service),
) -> list[SurveyorDTO]:
    return await service.list_all()


@router.post("/surveyors", response_model=SurveyorDTO, tags=["Surveyors"])
async def save_surveyor(
    request: SurveyorUpsertRequest,
    service: SurveyorService = Depends(get_surveyor_service),
) -> SurveyorDTO:
    """Создать или обновить геодезиста (по id)."""
    return await service.save(request)


@router.get("/surveyors/filter", response_model=list[SurveyorDTO], tags=["Surveyors"])
async def filter_surveyors(
    city: str | None = Query(default=None),
    project: str | None = Query(default=None),
    status_filter: SurveyorStatus | None = Query(default=None, alias="status"),
    service: SurveyorService = Depends(get_surveyor_service),
) -> list[SurveyorDTO]:
    return await service.filter(city=city, project_name=project, status=status_filter)


@router.get("/surveyors/status", response_model=dict[str, str], tags=["Surveyors"])
async def get_surveyor_statuses(
    service: SurveyorService = Depends(get_surveyor_service),
) -> dict[str, str]:
    """Статусы всех геодезистов: {id: "Online" | "Offline"}."""
    return await service.statuses()


@router.get("/surveyors/check-username", response_model=UsernameAvailability, tags=["Surveyors"])
async def check_username(
    username: str = Query(..., min_length=1),
    service: SurveyorService = Depends(get_surveyor_service),
) -> UsernameAvailability:
    return UsernameAvailability(available=await service.is_username_available(username))


@router.post("/surveyors/login", response_model=LoginResponse, tags=["Surveyors"])
async def login(
    request: LoginRequest,
    service: SurveyorService = Depends(get_surveyor_service),
) -> LoginResponse | JSONResponse:
    """
    Вход геодезиста. Успешный вход отмечает активность.

    При неудаче 401 с тем же телом {"success": false, "message": ...}.
    """
    result = await service.login(request.username, request.password)
    if not result.success:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=result.model_dump())
    return result


@router.post("/surveyors/{surveyor_id}/activity", tags=["Surveyors"])
async def record_activity(
    surveyor_id: str,
    authorization: str | None = Header(default=None),
    service: SurveyorService = Depends(get_surveyor_service),
) -> dict[str, Any]:
    """Явный сигнал активности (heartbeat) от клиента."""
    instant = await service.record_activity(surveyor_id, authorization)
    return {"surveyorId": surveyor_id, "lastActivity": instant.isoformat()}


@router.get("/surveyors/{surveyor_id}", response_model=SurveyorDTO, tags=["Surveyors"])
async def get_surveyor(
    surveyor_id: str,
    service: SurveyorService = Depends(get_surveyor_service),
) -> SurveyorDTO:
    surveyor = await service.get(surveyor_id)
    if surveyor is None:
        raise HTTPException(status_code=404, detail=f"Surveyor {surveyor_id} not found")
    return surveyor
