# src/shared/__init__.py
"""
Общий код между слоями сервиса.

Модули:
- models: DTO и Pydantic-модели API
"""

__all__: list[str] = []
