# src/core/ingest/__init__.py
"""
Модуль приёма live-локаций.
"""

from src.core.ingest.errors import (
    IdentityMismatchError,
    IngestError,
    InvalidInputError,
    StoreFailureError,
    UnauthorizedError,
)
from src.core.ingest.service import LocationIngestService

__all__ = [
    "IngestError",
    "UnauthorizedError",
    "InvalidInputError",
    "IdentityMismatchError",
    "StoreFailureError",
    "LocationIngestService",
]
