# src/services/tracking_api/__init__.py
"""
Tracking API: HTTP и WebSocket поверхность сервиса трекинга.
"""
