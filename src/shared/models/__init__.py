# src/shared/models/__init__.py
"""
Общие DTO и Pydantic-модели API.
"""

from src.shared.models.location_dto import (
    LiveLocationMessage,
    LocationSampleDTO,
    IngestAckDTO,
    ensure_utc,
)
from src.shared.models.surveyor_dto import (
    SurveyorDTO,
    SurveyorUpsertRequest,
    LoginRequest,
    LoginResponse,
    UsernameAvailability,
)
from src.shared.models.common import (
    ErrorResponse,
    HealthStatus,
)

__all__ = [
    # Location
    "LiveLocationMessage",
    "LocationSampleDTO",
    "IngestAckDTO",
    "ensure_utc",
    # Surveyor
    "SurveyorDTO",
    "SurveyorUpsertRequest",
    "LoginRequest",
    "LoginResponse",
    "UsernameAvailability",
    # Common
    "ErrorResponse",
    "HealthStatus",
]
