# src/core/ingest/errors.py
"""
Ошибки приёма live-локаций.
"""


class IngestError(Exception):
    """Базовая ошибка приёма. Несёт код для логов и HTTP-слоя."""

    code = "ingest_error"

    def __init__(self, message: str, *, surveyor_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.surveyor_id = surveyor_id


class UnauthorizedError(IngestError):
    """Учётные данные отсутствуют или неверны. Состояние не изменено."""

    code = "unauthorized"


class InvalidInputError(IngestError):
    """Некорректное сообщение (поля, координаты, время). Состояние не изменено."""

    code = "invalid_input"


class IdentityMismatchError(IngestError):
    """Аутентифицированный геодезист отправляет данные за другого."""

    code = "identity_mismatch"


class StoreFailureError(IngestError):
    """
    Точка не сохранена.

    К этому моменту активность уже отмечена и рассылка уже выполнена,
    откатов нет.
    """

    code = "store_failure"
