# src/core/surveyors/__init__.py
"""
Модуль справочника геодезистов.
"""

from src.core.surveyors.auth import Authenticator, BasicCredentialAuthenticator
from src.core.surveyors.models import Surveyor
from src.core.surveyors.repository import SurveyorRepository
from src.core.surveyors.service import SurveyorService, UsernameTakenError

__all__ = [
    "Authenticator",
    "BasicCredentialAuthenticator",
    "Surveyor",
    "SurveyorRepository",
    "SurveyorService",
    "UsernameTakenError",
]
