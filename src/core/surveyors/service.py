# src/core/surveyors/service.py
"""
Сервис справочника геодезистов.
Объединяет данные из БД с онлайн-статусом от PresenceResolver.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import asyncpg

from src.common.constants import SurveyorStatus, TypeMsg
from src.common.logger import log_info, log_warning
from src.core.ingest.errors import IdentityMismatchError, UnauthorizedError
from src.core.presence import PresenceClock, PresenceResolver
from src.core.surveyors.auth import Authenticator
from src.core.surveyors.models import Surveyor
from src.core.surveyors.passwords import hash_password, verify_password
from src.core.surveyors.repository import SurveyorRepository
from src.shared.models.surveyor_dto import LoginResponse, SurveyorDTO, SurveyorUpsertRequest


class UsernameTakenError(Exception):
    """Логин уже занят другим геодезистом."""

    def __init__(self, username: str) -> None:
        super().__init__(f"Username '{username}' is already taken")
        self.username = username


class SurveyorService:
    """
    Сервис геодезистов.

    Все списочные операции считают статусы одним вызовом
    PresenceResolver.all_statuses, т.е. с единым now на ответ.
    """

    def __init__(
        self,
        repository: SurveyorRepository,
        clock: PresenceClock,
        resolver: PresenceResolver,
        authenticator: Authenticator,
        enforce_identity: bool = True,
    ) -> None:
        self._repo = repository
        self._clock = clock
        self._resolver = resolver
        self._authenticator = authenticator
        self._enforce_identity = enforce_identity

    async def _decorate(self, surveyors: list[Surveyor]) -> list[SurveyorDTO]:
        statuses = await self._resolver.all_statuses([s.id for s in surveyors])
        return [s.to_dto(online=statuses.get(s.id, False)) for s in surveyors]

    # =========================================================================
    # ЧТЕНИЕ
    # =========================================================================

    async def list_all(self) -> list[SurveyorDTO]:
        return await self._decorate(await self._repo.list_all())

    async def get(self, surveyor_id: str) -> Optional[SurveyorDTO]:
        surveyor = await self._repo.get_by_id(surveyor_id)
        if surveyor is None:
            return None
        return surveyor.to_dto(online=await self._resolver.is_online(surveyor_id))

    async def filter(
        self,
        city: Optional[str] = None,
        project_name: Optional[str] = None,
        status: Optional[SurveyorStatus] = None,
    ) -> list[SurveyorDTO]:
        """
        Фильтр по городу/проекту (точное совпадение) и, опционально, статусу.
        """
        result = await self._decorate(await self._repo.filter(city, project_name))
        if status is None:
            return result
        return [dto for dto in result if SurveyorStatus.from_flag(dto.online) is status]

    async def statuses(self) -> dict[str, str]:
        """{surveyorId: "Online" | "Offline"} для всех геодезистов."""
        surveyors = await self._repo.list_all()
        flags = await self._resolver.all_statuses([s.id for s in surveyors])
        return {sid: SurveyorStatus.from_flag(online).value for sid, online in flags.items()}

    async def is_username_available(self, username: str) -> bool:
        return not await self._repo.exists_username(username)

    # =========================================================================
    # ЗАПИСЬ
    # =========================================================================

    async def save(self, request: SurveyorUpsertRequest) -> SurveyorDTO:
        """
        Создаёт или обновляет геодезиста.

        Raises:
            UsernameTakenError: логин занят другим id
        """
        password_hash = hash_password(request.password) if request.password else None
        surveyor = Surveyor.from_request(request, password_hash)
        try:
            saved = await self._repo.upsert(surveyor)
        except asyncpg.UniqueViolationError as e:
            raise UsernameTakenError(request.username or "") from e

        return saved.to_dto(online=await self._resolver.is_online(saved.id))

    async def login(self, username: str, password: str) -> LoginResponse:
        """
        Вход по логину/паролю. Успешный вход отмечает активность.
        """
        surveyor = await self._repo.get_by_username(username)
        if surveyor is None or not verify_password(password, surveyor.password_hash):
            await log_warning(f"Неудачный вход: {username}", logger_name="surveyors")
            return LoginResponse(success=False, message="Invalid username or password")

        self._clock.touch(surveyor.id)
        await log_info(f"Геодезист {surveyor.id} вошёл в систему", type_msg=TypeMsg.INFO, logger_name="surveyors")
        return LoginResponse(
            success=True,
            message="Login successful",
            surveyor=surveyor.to_dto(online=True),
        )

    async def record_activity(self, surveyor_id: str, credential: Optional[str]) -> datetime:
        """
        Явный сигнал активности от клиента.

        Raises:
            UnauthorizedError: неверные учётные данные
            IdentityMismatchError: отметка за другого геодезиста
        """
        caller = await self._authenticator.verify(credential)
        if caller is None:
            raise UnauthorizedError("Invalid credentials", surveyor_id=surveyor_id)
        if self._enforce_identity and caller != surveyor_id:
            raise IdentityMismatchError(
                f"Authenticated as {caller}, cannot record activity for {surveyor_id}",
                surveyor_id=surveyor_id,
            )
        return self._clock.touch(caller)
