# src/core/surveyors/repository.py
"""
Репозиторий справочника геодезистов.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from asyncpg import Record

from src.common.constants import TypeMsg
from src.common.logger import log_info
from src.core.surveyors.models import Surveyor
from src.infra.database import DatabaseManager

_COLUMNS = "id, name, city, project_name, username, password_hash, created_at, updated_at"


def _to_surveyor(row: Record) -> Surveyor:
    return Surveyor(
        id=row["id"],
        name=row["name"],
        city=row["city"],
        project_name=row["project_name"],
        username=row["username"],
        password_hash=row["password_hash"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class SurveyorRepository:
    """Репозиторий геодезистов. Ошибки БД пробрасываются в сервис."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Инициализация репозитория.

        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    async def get_by_id(self, surveyor_id: str) -> Optional[Surveyor]:
        row = await self._db.fetchrow(
            f"SELECT {_COLUMNS} FROM surveyors WHERE id = $1",
            surveyor_id,
        )
        return _to_surveyor(row) if row is not None else None

    async def get_by_username(self, username: str) -> Optional[Surveyor]:
        row = await self._db.fetchrow(
            f"SELECT {_COLUMNS} FROM surveyors WHERE username = $1",
            username,
        )
        return _to_surveyor(row) if row is not None else None

    async def list_all(self) -> list[Surveyor]:
        rows = await self._db.fetch(f"SELECT {_COLUMNS} FROM surveyors ORDER BY id")
        return [_to_surveyor(r) for r in rows]

    async def filter(
        self,
        city: Optional[str] = None,
        project_name: Optional[str] = None,
    ) -> list[Surveyor]:
        """
        Точное совпадение по городу и/или проекту.
        Незаданный критерий не ограничивает выборку.
        """
        rows = await self._db.fetch(
            f"""
            SELECT {_COLUMNS}
            FROM surveyors
            WHERE ($1::varchar IS NULL OR city = $1)
              AND ($2::varchar IS NULL OR project_name = $2)
            ORDER BY id
            """,
            city,
            project_name,
        )
        return [_to_surveyor(r) for r in rows]

    async def upsert(self, surveyor: Surveyor) -> Surveyor:
        """
        Создаёт или обновляет геодезиста по id.
        Если password_hash не передан, прежний хэш сохраняется.
        """
        now = datetime.now(timezone.utc)
        row = await self._db.fetchrow(
            f"""
            INSERT INTO surveyors (id, name, city, project_name, username, password_hash,
                                   created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $7)
            ON CONFLICT (id) DO UPDATE SET
                name = EXCLUDED.name,
                city = EXCLUDED.city,
                project_name = EXCLUDED.project_name,
                username = EXCLUDED.username,
                password_hash = COALESCE(EXCLUDED.password_hash, surveyors.password_hash),
                updated_at = EXCLUDED.updated_at
            RETURNING {_COLUMNS}
            """,
            surveyor.id,
            surveyor.name,
            surveyor.city,
            surveyor.project_name,
            surveyor.username,
            surveyor.password_hash,
            now,
        )
        await log_info(f"Геодезист {surveyor.id} создан/обновлён", type_msg=TypeMsg.DEBUG, logger_name="surveyors")
        return _to_surveyor(row)

    async def exists_username(self, username: str) -> bool:
        return bool(
            await self._db.fetchval(
                "SELECT EXISTS(SELECT 1 FROM surveyors WHERE username = $1)",
                username,
            )
        )

    async def count(self) -> int:
        return await self._db.fetchval("SELECT COUNT(*) FROM surveyors")
