# src/core/presence/__init__.py
"""
Модуль присутствия геодезистов.
"""

from src.core.presence.clock import PresenceClock, utc_now
from src.core.presence.resolver import DEFAULT_LIVENESS_WINDOW, PresenceResolver

__all__ = [
    "PresenceClock",
    "PresenceResolver",
    "DEFAULT_LIVENESS_WINDOW",
    "utc_now",
]
