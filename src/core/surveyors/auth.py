# src/core/surveyors/auth.py
"""
Аутентификация геодезистов по заголовку HTTP Basic.
"""

from __future__ import annotations

import base64
import binascii
from typing import Protocol

from src.core.surveyors.passwords import verify_password
from src.core.surveyors.repository import SurveyorRepository


class Authenticator(Protocol):
    """Проверка учётных данных: id геодезиста или None."""

    async def verify(self, credential: str | None) -> str | None:
        ...


def parse_basic_credential(credential: str | None) -> tuple[str, str] | None:
    """
    Разбирает значение заголовка "Basic base64(username:password)".

    Returns:
        (username, password) или None, если формат неверный
    """
    if not credential:
        return None

    scheme, _, token = credential.strip().partition(" ")
    if scheme.lower() != "basic" or not token:
        return None

    try:
        decoded = base64.b64decode(token.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    username, sep, password = decoded.partition(":")
    if not sep or not username:
        return None
    return username, password


class BasicCredentialAuthenticator:
    """
    Authenticator поверх справочника геодезистов.

    Любая неудача (нет заголовка, чужая схема, битый base64,
    неизвестный логин, неверный пароль) даёт None без деталей.
    Ошибки БД пробрасываются.
    """

    def __init__(self, repository: SurveyorRepository) -> None:
        self._repository = repository

    async def verify(self, credential: str | None) -> str | None:
        parsed = parse_basic_credential(credential)
        if parsed is None:
            return None

        username, password = parsed
        surveyor = await self._repository.get_by_username(username)
        if surveyor is None or not verify_password(password, surveyor.password_hash):
            return None
        return surveyor.id
