# src/core/surveyors/seed.py
"""
Демо-данные: стартовый набор геодезистов для пустой БД.
"""

from __future__ import annotations

from src.common.constants import TypeMsg
from src.common.logger import log_info
from src.core.surveyors.models import Surveyor
from src.core.surveyors.passwords import hash_password
from src.core.surveyors.repository import SurveyorRepository
from src.shared.models.surveyor_dto import SurveyorUpsertRequest

SAMPLE_SURVEYORS: tuple[SurveyorUpsertRequest, ...] = (
    SurveyorUpsertRequest(id="SURV001", name="John Smith", city="New York",
                          project_name="CityMapping", username="john_smith", password="password123"),
    SurveyorUpsertRequest(id="SURV002", name="Alice Johnson", city="Chicago",
                          project_name="RoadSurvey", username="alice_j", password="secure456"),
    SurveyorUpsertRequest(id="SURV003", name="Robert Davis", city="Los Angeles",
                          project_name="UrbanPlanning", username="rob_davis", password="survey789"),
    SurveyorUpsertRequest(id="ADMIN001", name="Admin User", city="Central",
                          project_name="Administration", username="admin", password="admin123"),
)


async def seed_sample_surveyors(repository: SurveyorRepository) -> int:
    """
    Заполняет справочник демо-геодезистами, если он пуст.

    Returns:
        Количество добавленных записей (0, если данные уже есть)
    """
    if await repository.count() > 0:
        return 0

    for request in SAMPLE_SURVEYORS:
        password_hash = hash_password(request.password) if request.password else None
        await repository.upsert(Surveyor.from_request(request, password_hash))

    await log_info(
        f"Добавлено демо-геодезистов: {len(SAMPLE_SURVEYORS)}",
        type_msg=TypeMsg.INFO,
        logger_name="surveyors",
    )
    return len(SAMPLE_SURVEYORS)
