# src/common/__init__.py
"""
Общие утилиты, константы и логгер.
"""

from src.common.logger import get_logger, log_info, log_error, log_warning, log_debug, log_event
from src.common.constants import TypeMsg, SurveyorStatus, TrackingEvent

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "log_event",
    "TypeMsg",
    "SurveyorStatus",
    "TrackingEvent",
]
