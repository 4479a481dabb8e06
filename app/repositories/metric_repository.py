"""지표 레포지토리 — 지표 및 지표 값 쿼리.

Metric Repository — queries for metrics and metric entries.
Entry lookups always take the full id set of a scorecard's metrics and
issue a single ``IN`` query.
"""

from collections.abc import Iterable, Sequence
from datetime import date
from typing import Literal
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.scorecard import Metric, MetricEntry
from app.repositories.base import BaseRepository

MetricOrder = Literal["display_order", "archived_at", "created_at"]


class MetricRepository(BaseRepository[Metric]):
    """지표 테이블 쿼리 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Metric)

    async def list_for_scorecards(
        self,
        db: AsyncSession,
        scorecard_ids: Iterable[UUID],
        archived: bool = False,
        order_by: MetricOrder = "display_order",
    ) -> Sequence[Metric]:
        """스코어카드들의 지표를 조회합니다.

        List metrics of the given scorecards.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            scorecard_ids: 스코어카드 ID 목록 (Scorecard ids)
            archived: True면 보관된 지표, False면 활성·미보관 지표
                      (Archived metrics, or active non-archived ones)
            order_by: display_order 오름차순, archived_at/created_at 내림차순
                      (display_order ascending, archived_at/created_at descending)
        """
        ids: list[UUID] = list(scorecard_ids)
        if not ids:
            return []

        query: Select = select(Metric).where(Metric.scorecard_id.in_(ids))
        if archived:
            query = query.where(Metric.is_archived.is_(True))
        else:
            query = query.where(Metric.is_active.is_(True), Metric.is_archived.is_(False))

        if order_by == "display_order":
            query = query.order_by(Metric.display_order.asc())
        elif order_by == "archived_at":
            query = query.order_by(Metric.archived_at.desc())
        else:
            query = query.order_by(Metric.created_at.desc())

        result = await db.execute(query)
        return result.scalars().all()

    async def count_archived(self, db: AsyncSession, scorecard_id: UUID) -> int:
        """보관된 지표 수 (Authoritative archived-metric count)."""
        query: Select = (
            select(func.count())
            .select_from(Metric)
            .where(Metric.scorecard_id == scorecard_id, Metric.is_archived.is_(True))
        )
        return (await db.execute(query)).scalar() or 0

    async def count_owned(self, db: AsyncSession, scorecard_id: UUID, owner_user_id: UUID) -> int:
        """사용자가 담당하는 활성 지표 수."""
        query: Select = (
            select(func.count())
            .select_from(Metric)
            .where(
                Metric.scorecard_id == scorecard_id,
                Metric.owner_user_id == owner_user_id,
                Metric.is_active.is_(True),
            )
        )
        return (await db.execute(query)).scalar() or 0

    async def list_active_owner_rows(self, db: AsyncSession) -> list[tuple[UUID, UUID | None]]:
        """모든 활성 지표의 (scorecard_id, owner_user_id) 쌍."""
        result = await db.execute(
            select(Metric.scorecard_id, Metric.owner_user_id).where(Metric.is_active.is_(True))
        )
        return [(row.scorecard_id, row.owner_user_id) for row in result.all()]

    async def next_display_order(self, db: AsyncSession, scorecard_id: UUID) -> int:
        """다음 표시 순서 — 스코어카드 안에서 최댓값 + 1, 지표가 없으면 0."""
        return await super().next_display_order(db, Metric.scorecard_id == scorecard_id)

    async def get_in_scorecard(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        metric_id: UUID,
    ) -> Metric | None:
        result = await db.execute(
            select(Metric).where(Metric.id == metric_id, Metric.scorecard_id == scorecard_id)
        )
        return result.scalar_one_or_none()


class MetricEntryRepository(BaseRepository[MetricEntry]):
    """지표 값 테이블 쿼리 레포지토리."""

    def __init__(self) -> None:
        super().__init__(MetricEntry)

    async def list_for_metrics(
        self,
        db: AsyncSession,
        metric_ids: Iterable[UUID],
    ) -> Sequence[MetricEntry]:
        """지표들의 값을 기간 최신순으로 한 번에 조회합니다.

        All entries of the given metrics in one query, newest period first.
        """
        ids: list[UUID] = list(metric_ids)
        if not ids:
            return []
        query: Select = (
            select(MetricEntry)
            .where(MetricEntry.metric_id.in_(ids))
            .order_by(MetricEntry.period_start.desc())
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def get_for_period(
        self,
        db: AsyncSession,
        metric_id: UUID,
        period_start: date,
    ) -> MetricEntry | None:
        result = await db.execute(
            select(MetricEntry).where(
                MetricEntry.metric_id == metric_id,
                MetricEntry.period_start == period_start,
            )
        )
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 — Singleton instances
metric_repository: MetricRepository = MetricRepository()
metric_entry_repository: MetricEntryRepository = MetricEntryRepository()
