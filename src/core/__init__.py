# src/core/__init__.py
"""
Доменный слой (Core Domain).
Присутствие, треки, приём локаций и справочник геодезистов.
"""

from src.core.ingest import LocationIngestService
from src.core.presence import PresenceClock, PresenceResolver
from src.core.surveyors import SurveyorService
from src.core.tracks import TrackHistoryService

__all__ = [
    "LocationIngestService",
    "PresenceClock",
    "PresenceResolver",
    "SurveyorService",
    "TrackHistoryService",
]
