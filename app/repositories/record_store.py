"""레코드 저장소 — 읽기 측 조회를 {data, error} 결과로 감싸는 계층.

Record store — the read-side fetch interface used by the loaders.

각 조회는 독립된 세션을 열기 때문에 asyncio.gather로 병렬 실행할 수
있습니다 (하나의 AsyncSession은 동시 쿼리를 지원하지 않음).
데이터베이스 예외는 FetchResult.error 값으로 변환되어, 필수 조회와
선택 조회의 실패 처리 방식을 로더가 결정합니다.
Every fetch opens its own session so the loaders can fan fetches out with
``asyncio.gather`` (a single AsyncSession cannot run concurrent queries).
Database exceptions become ``FetchResult.error`` values; the loaders decide
which fetches are required and which are best-effort.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ValidationError
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.repositories.metric_repository import MetricOrder, metric_entry_repository, metric_repository
from app.repositories.people_repository import (
    employee_repository,
    profile_repository,
    team_member_repository,
)
from app.repositories.role_repository import employee_role_repository, role_repository
from app.repositories.scorecard_repository import scorecard_repository
from app.schemas.people import EmployeeRecord, ProfileRecord, ProfileSummary
from app.schemas.role import RoleRecord
from app.schemas.scorecard import (
    MetricEntryRecord,
    MetricRecord,
    ScorecardRecord,
    ScorecardWithDetails,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FetchResult(BaseModel, Generic[T]):
    """조회 결과 — 성공 시 data, 실패 시 error.

    Outcome of one fetch: rows in ``data`` or a message in ``error``.
    """

    data: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MetricOwnerRow(BaseModel):
    """활성 지표의 (스코어카드, 담당자) 쌍."""

    scorecard_id: UUID
    owner_user_id: UUID | None = None


class RoleAssignmentRow(BaseModel):
    """역할 배정 행 — 배정된 프로필 식별 정보 포함."""

    id: UUID
    profile_id: UUID
    role_id: UUID
    profile: ProfileSummary | None = None


class ScorecardStore(ABC):
    """로더가 사용하는 레코드 조회 인터페이스.

    Record-fetch interface consumed by the loaders. Implementations must
    never raise for storage failures; they return ``FetchResult(error=...)``.
    """

    @abstractmethod
    async def get_scorecard(self, scorecard_id: UUID) -> FetchResult[ScorecardRecord]:
        """활성 스코어카드 하나 — 없으면 data=None."""

    @abstractmethod
    async def list_scorecards(
        self,
        role_id: UUID | None = None,
        exclude_id: UUID | None = None,
    ) -> FetchResult[list[ScorecardWithDetails]]:
        """활성 스코어카드 목록, 최신 생성순, 소유자 포함."""

    @abstractmethod
    async def list_metrics(
        self,
        scorecard_ids: Iterable[UUID],
        archived: bool = False,
        order_by: MetricOrder = "display_order",
    ) -> FetchResult[list[MetricRecord]]:
        """스코어카드들의 지표 (활성·미보관 또는 보관됨)."""

    @abstractmethod
    async def count_archived_metrics(self, scorecard_id: UUID) -> FetchResult[int]:
        """보관된 지표 수."""

    @abstractmethod
    async def list_metric_owner_rows(self) -> FetchResult[list[MetricOwnerRow]]:
        """모든 활성 지표의 (scorecard_id, owner_user_id)."""

    @abstractmethod
    async def list_entries(self, metric_ids: Iterable[UUID]) -> FetchResult[list[MetricEntryRecord]]:
        """지표들의 값, 기간 최신순, 단일 배치 조회."""

    @abstractmethod
    async def get_profiles(self, profile_ids: Iterable[UUID]) -> FetchResult[list[ProfileSummary]]:
        """ID 집합에 대한 사람 식별 정보 조회."""

    @abstractmethod
    async def list_profiles(self, active_only: bool = False) -> FetchResult[list[ProfileRecord]]:
        """전체 프로필 (관리자 참조 포함)."""

    @abstractmethod
    async def list_employees(self) -> FetchResult[list[EmployeeRecord]]:
        """직원 명부, 이름순."""

    @abstractmethod
    async def list_team_member_ids(self, team_id: UUID) -> FetchResult[list[UUID]]:
        """팀 구성원 사용자 ID."""

    @abstractmethod
    async def list_user_team_ids(self, user_id: UUID) -> FetchResult[list[UUID]]:
        """사용자가 속한 팀 ID."""

    @abstractmethod
    async def list_managed_team_ids(self, manager_id: UUID) -> FetchResult[list[UUID]]:
        """소유자가 manager_id에게 보고하는 팀 ID."""

    @abstractmethod
    async def list_scorecard_member_ids(self, scorecard_id: UUID) -> FetchResult[list[UUID]]:
        """스코어카드 공유 구성원 사용자 ID."""

    @abstractmethod
    async def list_member_scorecard_ids(self, user_id: UUID) -> FetchResult[list[UUID]]:
        """사용자가 공유받은 스코어카드 ID."""

    @abstractmethod
    async def list_roles(self) -> FetchResult[list[RoleRecord]]:
        """전체 역할, 표시 순서대로."""

    @abstractmethod
    async def list_role_assignments(
        self,
        role_id: UUID | None = None,
    ) -> FetchResult[list[RoleAssignmentRow]]:
        """역할 배정 목록."""

    @abstractmethod
    async def call_scorecard_aggregate(
        self,
        scorecard_id: UUID,
        user_id: UUID,
    ) -> FetchResult[dict[str, Any]]:
        """get_scorecard_aggregate 데이터베이스 함수 호출 — {error, data} 문서 반환."""


class SqlRecordStore(ScorecardStore):
    """SQLAlchemy 기반 레코드 저장소.

    SQLAlchemy-backed store. Each call opens a short-lived session from
    ``session_factory`` and maps ORM rows to record schemas.

    Attributes:
        session_factory: 비동기 세션 팩토리 (Async session factory)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory: async_sessionmaker[AsyncSession] = session_factory

    async def _run(self, operation: Callable[[AsyncSession], Awaitable[T]]) -> FetchResult[T]:
        # 연결 실패(OSError)와 예상 밖의 행(ValidationError)도 error 값으로 반환
        try:
            async with self.session_factory() as session:
                return FetchResult(data=await operation(session))
        except (SQLAlchemyError, ValidationError, OSError) as exc:
            logger.debug("Record fetch failed", exc_info=True)
            return FetchResult(error=f"{type(exc).__name__}: {exc}")

    async def get_scorecard(self, scorecard_id: UUID) -> FetchResult[ScorecardRecord]:
        async def op(db: AsyncSession) -> ScorecardRecord | None:
            row = await scorecard_repository.get_active(db, scorecard_id)
            return ScorecardRecord.model_validate(row) if row is not None else None

        return await self._run(op)

    async def list_scorecards(
        self,
        role_id: UUID | None = None,
        exclude_id: UUID | None = None,
    ) -> FetchResult[list[ScorecardWithDetails]]:
        async def op(db: AsyncSession) -> list[ScorecardWithDetails]:
            rows = await scorecard_repository.list_active(db, role_id=role_id, exclude_id=exclude_id)
            return [ScorecardWithDetails.model_validate(row) for row in rows]

        return await self._run(op)

    async def list_metrics(
        self,
        scorecard_ids: Iterable[UUID],
        archived: bool = False,
        order_by: MetricOrder = "display_order",
    ) -> FetchResult[list[MetricRecord]]:
        ids: list[UUID] = list(scorecard_ids)

        async def op(db: AsyncSession) -> list[MetricRecord]:
            rows = await metric_repository.list_for_scorecards(db, ids, archived=archived, order_by=order_by)
            return [MetricRecord.model_validate(row) for row in rows]

        return await self._run(op)

    async def count_archived_metrics(self, scorecard_id: UUID) -> FetchResult[int]:
        return await self._run(lambda db: metric_repository.count_archived(db, scorecard_id))

    async def list_metric_owner_rows(self) -> FetchResult[list[MetricOwnerRow]]:
        async def op(db: AsyncSession) -> list[MetricOwnerRow]:
            rows = await metric_repository.list_active_owner_rows(db)
            return [MetricOwnerRow(scorecard_id=sc_id, owner_user_id=owner_id) for sc_id, owner_id in rows]

        return await self._run(op)

    async def list_entries(self, metric_ids: Iterable[UUID]) -> FetchResult[list[MetricEntryRecord]]:
        ids: list[UUID] = list(metric_ids)

        async def op(db: AsyncSession) -> list[MetricEntryRecord]:
            rows = await metric_entry_repository.list_for_metrics(db, ids)
            return [MetricEntryRecord.model_validate(row) for row in rows]

        return await self._run(op)

    async def get_profiles(self, profile_ids: Iterable[UUID]) -> FetchResult[list[ProfileSummary]]:
        ids: list[UUID] = list(profile_ids)

        async def op(db: AsyncSession) -> list[ProfileSummary]:
            rows = await profile_repository.get_by_ids(db, ids)
            return [ProfileSummary.model_validate(row) for row in rows]

        return await self._run(op)

    async def list_profiles(self, active_only: bool = False) -> FetchResult[list[ProfileRecord]]:
        async def op(db: AsyncSession) -> list[ProfileRecord]:
            rows = await profile_repository.list_all(db, active_only=active_only)
            return [ProfileRecord.model_validate(row) for row in rows]

        return await self._run(op)

    async def list_employees(self) -> FetchResult[list[EmployeeRecord]]:
        async def op(db: AsyncSession) -> list[EmployeeRecord]:
            rows = await employee_repository.list_all(db)
            return [EmployeeRecord.model_validate(row) for row in rows]

        return await self._run(op)

    async def list_team_member_ids(self, team_id: UUID) -> FetchResult[list[UUID]]:
        return await self._run(lambda db: team_member_repository.list_user_ids(db, team_id))

    async def list_user_team_ids(self, user_id: UUID) -> FetchResult[list[UUID]]:
        return await self._run(lambda db: team_member_repository.list_team_ids(db, user_id))

    async def list_managed_team_ids(self, manager_id: UUID) -> FetchResult[list[UUID]]:
        return await self._run(lambda db: team_member_repository.list_team_ids_managed_by(db, manager_id))

    async def list_scorecard_member_ids(self, scorecard_id: UUID) -> FetchResult[list[UUID]]:
        return await self._run(lambda db: scorecard_repository.list_member_user_ids(db, scorecard_id))

    async def list_member_scorecard_ids(self, user_id: UUID) -> FetchResult[list[UUID]]:
        return await self._run(lambda db: scorecard_repository.list_scorecard_ids_for_member(db, user_id))

    async def list_roles(self) -> FetchResult[list[RoleRecord]]:
        async def op(db: AsyncSession) -> list[RoleRecord]:
            rows = await role_repository.list_ordered(db)
            return [RoleRecord.model_validate(row) for row in rows]

        return await self._run(op)

    async def list_role_assignments(
        self,
        role_id: UUID | None = None,
    ) -> FetchResult[list[RoleAssignmentRow]]:
        async def op(db: AsyncSession) -> list[RoleAssignmentRow]:
            rows = await employee_role_repository.list_all(db, role_id=role_id)
            return [
                RoleAssignmentRow(
                    id=row.id,
                    profile_id=row.profile_id,
                    role_id=row.role_id,
                    profile=ProfileSummary.model_validate(row.profile) if row.profile is not None else None,
                )
                for row in rows
            ]

        return await self._run(op)

    async def call_scorecard_aggregate(
        self,
        scorecard_id: UUID,
        user_id: UUID,
    ) -> FetchResult[dict[str, Any]]:
        async def op(db: AsyncSession) -> dict[str, Any] | None:
            query = select(func.get_scorecard_aggregate(scorecard_id, user_id, type_=JSONB))
            return (await db.execute(query)).scalar()

        return await self._run(op)
