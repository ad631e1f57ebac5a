# src/services/__init__.py
"""
Сервисы приложения.

Сервисы:
- tracking_api: FastAPI-приложение (REST + WebSocket)
- realtime_ws: рассылка live-локаций и Redis relay
"""

__all__: list[str] = []
