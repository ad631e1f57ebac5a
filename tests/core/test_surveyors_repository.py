# tests/core/test_surveyors_repository.py
"""
Тесты для SurveyorRepository и демо-данных.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.core.surveyors.models import Surveyor
from src.core.surveyors.passwords import verify_password
from src.core.surveyors.repository import SurveyorRepository
from src.core.surveyors.seed import SAMPLE_SURVEYORS, seed_sample_surveyors


@pytest.fixture
def repository(mock_db: AsyncMock) -> SurveyorRepository:
    return SurveyorRepository(mock_db)


class TestSurveyorRepository:

    @pytest.mark.asyncio
    async def test_get_by_id(
        self, repository: SurveyorRepository, mock_db: AsyncMock, sample_surveyor_row: dict[str, Any]
    ) -> None:
        mock_db.fetchrow.return_value = sample_surveyor_row

        surveyor = await repository.get_by_id("SURV001")

        assert surveyor.name == "John Smith"
        assert surveyor.project_name == "CityMapping"
        assert mock_db.fetchrow.call_args.args[1] == "SURV001"

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self, repository: SurveyorRepository, mock_db: AsyncMock) -> None:
        mock_db.fetchrow.return_value = None

        assert await repository.get_by_id("SURV404") is None

    @pytest.mark.asyncio
    async def test_get_by_username(
        self, repository: SurveyorRepository, mock_db: AsyncMock, sample_surveyor_row: dict[str, Any]
    ) -> None:
        mock_db.fetchrow.return_value = sample_surveyor_row

        surveyor = await repository.get_by_username("john_smith")

        assert surveyor.id == "SURV001"
        assert "WHERE username = $1" in mock_db.fetchrow.call_args.args[0]

    @pytest.mark.asyncio
    async def test_filter_passes_optional_criteria(
        self, repository: SurveyorRepository, mock_db: AsyncMock, sample_surveyor_row: dict[str, Any]
    ) -> None:
        mock_db.fetch.return_value = [sample_surveyor_row]

        result = await repository.filter(city="New York")

        assert [s.id for s in result] == ["SURV001"]
        assert mock_db.fetch.call_args.args[1:] == ("New York", None)

    @pytest.mark.asyncio
    async def test_upsert_returns_saved_row(
        self, repository: SurveyorRepository, mock_db: AsyncMock, sample_surveyor_row: dict[str, Any]
    ) -> None:
        mock_db.fetchrow.return_value = sample_surveyor_row

        saved = await repository.upsert(Surveyor(id="SURV001", name="John Smith"))

        query = mock_db.fetchrow.call_args.args[0]
        assert "ON CONFLICT (id) DO UPDATE" in query
        assert "COALESCE(EXCLUDED.password_hash, surveyors.password_hash)" in query
        assert saved.id == "SURV001"

    @pytest.mark.asyncio
    async def test_exists_username(self, repository: SurveyorRepository, mock_db: AsyncMock) -> None:
        mock_db.fetchval.return_value = True

        assert await repository.exists_username("john_smith") is True

    @pytest.mark.asyncio
    async def test_errors_propagate(self, repository: SurveyorRepository, mock_db: AsyncMock) -> None:
        mock_db.fetch.side_effect = ConnectionRefusedError("db down")

        with pytest.raises(ConnectionRefusedError):
            await repository.list_all()


class TestSeed:

    @pytest.mark.asyncio
    async def test_seeds_empty_table(self) -> None:
        repo = AsyncMock()
        repo.count.return_value = 0

        added = await seed_sample_surveyors(repo)

        assert added == 4
        saved = [c.args[0] for c in repo.upsert.await_args_list]
        assert [s.id for s in saved] == ["SURV001", "SURV002", "SURV003", "ADMIN001"]
        assert saved[0].username == "john_smith"
        assert verify_password("password123", saved[0].password_hash)

    @pytest.mark.asyncio
    async def test_skips_non_empty_table(self) -> None:
        repo = AsyncMock()
        repo.count.return_value = 2

        assert await seed_sample_surveyors(repo) == 0
        repo.upsert.assert_not_called()

    def test_sample_data(self) -> None:
        by_id = {s.id: s for s in SAMPLE_SURVEYORS}

        assert by_id["SURV002"].city == "Chicago"
        assert by_id["SURV003"].project_name == "UrbanPlanning"
        assert by_id["ADMIN001"].username == "admin"
