# src/core/tracks/__init__.py
"""
Модуль треков геодезистов.
"""

from src.core.tracks.history import TrackHistoryService
from src.core.tracks.models import LocationSample, to_wkt_point
from src.core.tracks.repository import PostgresTrackStore
from src.core.tracks.store import TrackStore

__all__ = [
    "LocationSample",
    "PostgresTrackStore",
    "TrackHistoryService",
    "TrackStore",
    "to_wkt_point",
]
