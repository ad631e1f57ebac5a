# src/core/surveyors/passwords.py
"""
Хэширование паролей геодезистов (passlib, схема pbkdf2_sha256).
"""

from __future__ import annotations

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    """Хэширует пароль со случайной солью."""
    return pwd_context.hash(password)


def verify_password(password: str, encoded: str | None) -> bool:
    """
    Проверяет пароль против сохранённого хэша.

    Пустой или нераспознанный хэш: просто False.
    """
    if not encoded:
        return False
    try:
        return pwd_context.verify(password, encoded)
    except (ValueError, TypeError):
        return False
