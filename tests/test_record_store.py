"""SQL 레코드 저장소 테스트 — 조회 실패는 예외 대신 error 값으로 반환."""

import uuid
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from app.repositories.record_store import SqlRecordStore
from app.repositories.scorecard_repository import scorecard_repository
from app.schemas.scorecard import ScorecardRecord


def session_factory():
    @asynccontextmanager
    async def open_session():
        yield AsyncMock()

    return open_session


def failing_factory(exc: Exception):
    @asynccontextmanager
    async def open_session():
        raise exc
        yield

    return open_session


class TestRun:
    """조회 래퍼."""

    async def test_success_wraps_data(self):
        store = SqlRecordStore(session_factory())

        async def op(_db):
            return [1, 2]

        result = await store._run(op)
        assert result.ok
        assert result.data == [1, 2]

    async def test_unexpected_row_becomes_error(self):
        store = SqlRecordStore(session_factory())

        async def op(_db):
            return ScorecardRecord.model_validate({"id": "not-a-uuid"})

        result = await store._run(op)
        assert not result.ok
        assert result.error.startswith("ValidationError")

    @pytest.mark.parametrize(
        "exc",
        [ConnectionRefusedError("connection refused"), OperationalError("SELECT 1", {}, Exception("down"))],
    )
    async def test_connect_failure_becomes_error(self, exc):
        store = SqlRecordStore(failing_factory(exc))

        async def op(_db):
            return []

        result = await store._run(op)
        assert not result.ok
        assert result.data is None

    async def test_programming_errors_propagate(self):
        store = SqlRecordStore(session_factory())

        async def op(_db):
            raise KeyError("column")

        with pytest.raises(KeyError):
            await store._run(op)


class TestGetScorecard:
    """스코어카드 단건 조회."""

    async def test_malformed_row_reported_not_raised(self, monkeypatch):
        monkeypatch.setattr(scorecard_repository, "get_active", AsyncMock(return_value=object()))
        store = SqlRecordStore(session_factory())

        result = await store.get_scorecard(uuid.uuid4())

        assert not result.ok
        assert "ValidationError" in result.error
