#!/usr/bin/env python3
"""
Entrypoint для Tracking API.

Запуск:
    python entrypoint_tracking_api.py

Порт по умолчанию: 8080
"""

import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from src.config import settings


def main() -> None:
    """Запустить Tracking API."""
    uvicorn.run(
        "src.services.tracking_api.app:app",
        host=settings.deployment.TRACKING_API_HOST,
        port=settings.deployment.TRACKING_API_PORT,
        reload=settings.system.DEBUG,
        log_level=settings.system.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
