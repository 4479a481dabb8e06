"""지표 서비스 — 지표 수명주기와 지표 값 쓰기 비즈니스 로직.

Metric Service — business logic for the metric lifecycle (create, update,
archive, restore, permanent delete, reorder, copy) and metric entries
(upsert, delete, note).
"""

import logging
from datetime import date, datetime, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.people import Profile
from app.models.scorecard import Metric, MetricEntry, Scorecard
from app.repositories.metric_repository import metric_entry_repository, metric_repository
from app.repositories.scorecard_repository import scorecard_repository
from app.schemas.metric import (
    MetricEntryUpsert,
    MetricOrderItem,
    TARGET_FIELDS,
    _MetricConfigBase,
)
from app.schemas.scorecard import MetricEntryRecord, MetricRecord
from app.services.scorecard_loader import metric_signature
from app.services.scorecard_service import scorecard_service
from app.utils.exceptions import BadRequestError, NotFoundError
from app.utils.periods import get_current_period_start

logger = logging.getLogger(__name__)

_TRUE_VALUES: frozenset[str] = frozenset({"true", "1", "yes"})
_FALSE_VALUES: frozenset[str] = frozenset({"false", "0", "no"})


def parse_entry_value(raw: str | float | bool, scoring_mode: str) -> float:
    """사용자 입력 값을 저장 값으로 변환합니다.

    Convert raw input into the stored value. yes_no metrics accept
    true/1/yes and false/0/no (stored as 1/0); every other mode parses a
    finite number.

    Raises:
        BadRequestError: 해석할 수 없는 값 ("Invalid boolean value" / "Invalid value")
    """
    if scoring_mode == "yes_no":
        if isinstance(raw, bool):
            return 1.0 if raw else 0.0
        text = str(raw).strip().lower()
        if text in _TRUE_VALUES or text == "1.0":
            return 1.0
        if text in _FALSE_VALUES or text == "0.0":
            return 0.0
        raise BadRequestError("Invalid boolean value")

    if isinstance(raw, bool):
        raise BadRequestError("Invalid value")
    try:
        value = float(str(raw).strip()) if isinstance(raw, str) else float(raw)
    except ValueError:
        raise BadRequestError("Invalid value")
    if value != value or value in (float("inf"), float("-inf")):
        raise BadRequestError("Invalid value")
    return value


def _is_copyable(metric: Metric, source: Scorecard | None, target: Scorecard) -> bool:
    """활성 역할 형제 스코어카드의 활성 지표만 복사 가능."""
    return (
        source is not None
        and source.id != target.id
        and source.is_active
        and source.role_id == target.role_id
        and metric.is_active
        and not metric.is_archived
    )


class MetricService:
    """지표 및 지표 값 쓰기 서비스.

    Every method takes the request's session; the router commits.
    """

    async def _get_metric(self, db: AsyncSession, scorecard_id: UUID, metric_id: UUID) -> Metric:
        metric: Metric | None = await metric_repository.get_in_scorecard(db, scorecard_id, metric_id)
        if metric is None:
            raise NotFoundError("Metric not found")
        return metric

    async def _ensure_owner_membership(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        owner_user_id: UUID | None,
    ) -> None:
        # 담당자를 편집자로 자동 공유 — Auto-share with the metric owner as editor
        if owner_user_id is None:
            return
        existing = await scorecard_repository.get_member(db, scorecard_id, owner_user_id)
        if existing is None:
            await scorecard_repository.add_member(db, scorecard_id, owner_user_id, role="editor")

    async def create_metric(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        data: _MetricConfigBase,
        user: Profile,
    ) -> MetricRecord:
        """새 지표를 생성합니다.

        Create a metric at the end of the scorecard's display order
        (max + 1, or 0). The metric owner becomes an editor member of the
        scorecard when not already a member.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            scorecard_id: 스코어카드 ID (Scorecard id)
            data: 모드별 검증된 지표 설정 (Mode-narrowed metric configuration)
            user: 요청 사용자 (Caller)

        Returns:
            MetricRecord: 생성된 지표 (Created metric)
        """
        await scorecard_service.get_editable_scorecard(db, scorecard_id, user)

        columns = data.to_columns()
        columns["scorecard_id"] = scorecard_id
        columns["display_order"] = await metric_repository.next_display_order(db, scorecard_id)
        metric: Metric = await metric_repository.create(db, columns)

        await self._ensure_owner_membership(db, scorecard_id, data.owner_user_id)
        logger.info("Metric %s created on scorecard %s", metric.id, scorecard_id)
        return MetricRecord.model_validate(metric)

    async def update_metric(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        metric_id: UUID,
        data: _MetricConfigBase,
        user: Profile,
    ) -> MetricRecord:
        """지표 설정을 교체합니다 — 다른 모드의 목표 필드는 NULL로 초기화."""
        await scorecard_service.get_editable_scorecard(db, scorecard_id, user)
        await self._get_metric(db, scorecard_id, metric_id)

        updated: Metric | None = await metric_repository.update(db, metric_id, data.to_columns())
        if updated is None:
            raise NotFoundError("Metric not found")

        await self._ensure_owner_membership(db, scorecard_id, data.owner_user_id)
        return MetricRecord.model_validate(updated)

    async def archive_metric(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        metric_id: UUID,
        user: Profile,
        reason: str | None = None,
    ) -> MetricRecord:
        """지표를 보관합니다 — 값은 유지."""
        await scorecard_service.get_editable_scorecard(db, scorecard_id, user)
        await self._get_metric(db, scorecard_id, metric_id)

        updated = await metric_repository.update(
            db,
            metric_id,
            {
                "is_active": False,
                "is_archived": True,
                "archived_at": datetime.now(timezone.utc),
                "archived_by": user.id,
                "archive_reason": reason.strip() if reason and reason.strip() else None,
            },
        )
        return MetricRecord.model_validate(updated)

    async def restore_metric(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        metric_id: UUID,
        user: Profile,
    ) -> MetricRecord:
        """보관된 지표를 복원합니다."""
        await scorecard_service.get_editable_scorecard(db, scorecard_id, user)
        await self._get_metric(db, scorecard_id, metric_id)

        updated = await metric_repository.update(
            db,
            metric_id,
            {
                "is_active": True,
                "is_archived": False,
                "archived_at": None,
                "archived_by": None,
                "archive_reason": None,
            },
        )
        return MetricRecord.model_validate(updated)

    async def delete_metric(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        metric_id: UUID,
        user: Profile,
    ) -> None:
        """지표를 영구 삭제합니다 — 모든 값이 함께 삭제됨."""
        await scorecard_service.get_editable_scorecard(db, scorecard_id, user)
        metric = await self._get_metric(db, scorecard_id, metric_id)
        await db.delete(metric)
        await db.flush()
        logger.info("Metric %s permanently deleted from scorecard %s", metric_id, scorecard_id)

    async def reorder_metrics(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        items: list[MetricOrderItem],
        user: Profile,
    ) -> None:
        """표시 순서를 일괄 변경합니다 — 하나라도 없으면 전체 거부.

        Apply a display-order batch within the caller's transaction. Any id
        that is not a metric of this scorecard rejects the whole batch
        before anything is written.

        Raises:
            BadRequestError: 스코어카드에 없는 지표 ID 포함 (Unknown metric in batch)
        """
        await scorecard_service.get_editable_scorecard(db, scorecard_id, user)

        ids: list[UUID] = [item.id for item in items]
        metrics = {metric.id: metric for metric in await metric_repository.get_by_ids(db, ids)}
        missing = [str(metric_id) for metric_id in ids if metric_id not in metrics or metrics[metric_id].scorecard_id != scorecard_id]
        if missing:
            raise BadRequestError(f"Unknown metrics in reorder batch: {', '.join(missing)}")

        for item in items:
            metrics[item.id].display_order = item.display_order
        await db.flush()

    async def copy_metrics(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        metric_ids: list[UUID],
        user: Profile,
    ) -> list[MetricRecord]:
        """같은 역할의 다른 스코어카드에서 지표 설정을 복사합니다 (값 제외).

        Copy metric configurations onto a role scorecard. Sources must be
        active metrics of another active scorecard of the same role, the same
        set the copyable-metrics listing offers. Sources whose (name,
        scoring_mode) signature already exists on the target, or repeats
        within the batch, are skipped. Entries are not copied.

        Raises:
            BadRequestError: 역할 스코어카드가 아니거나 복사할 수 없는 지표 포함
                (Target is not a role scorecard, or a source is outside the copyable set)
            NotFoundError: 없는 지표 ID (Unknown metric id)
        """
        target: Scorecard = await scorecard_service.get_editable_scorecard(db, scorecard_id, user)
        if target.type != "role" or target.role_id is None:
            raise BadRequestError("Metrics can only be copied onto a role scorecard")

        requested: list[UUID] = list(dict.fromkeys(metric_ids))
        sources = {metric.id: metric for metric in await metric_repository.get_by_ids(db, requested)}
        missing = [str(metric_id) for metric_id in requested if metric_id not in sources]
        if missing:
            raise NotFoundError(f"Metrics not found: {', '.join(missing)}")

        source_scorecards = {
            scorecard.id: scorecard
            for scorecard in await scorecard_repository.get_by_ids(
                db, {metric.scorecard_id for metric in sources.values()}
            )
        }
        rejected = [
            str(metric_id)
            for metric_id in requested
            if not _is_copyable(sources[metric_id], source_scorecards.get(sources[metric_id].scorecard_id), target)
        ]
        if rejected:
            raise BadRequestError(f"Metrics cannot be copied to this scorecard: {', '.join(rejected)}")

        existing = {
            metric_signature(metric)
            for metric in await metric_repository.list_for_scorecards(db, [scorecard_id])
        }
        next_order: int = await metric_repository.next_display_order(db, scorecard_id)
        created: list[MetricRecord] = []
        for metric_id in requested:
            source: Metric = sources[metric_id]
            signature = metric_signature(source)
            if signature in existing:
                logger.info("Skipping copy of metric %s: %r already on scorecard %s", metric_id, source.name, scorecard_id)
                continue
            existing.add(signature)

            columns = {
                "scorecard_id": scorecard_id,
                "name": source.name,
                "description": source.description,
                "cadence": source.cadence,
                "scoring_mode": source.scoring_mode,
                "unit": source.unit,
                "owner_user_id": source.owner_user_id,
                "display_order": next_order + len(created),
            }
            for field in TARGET_FIELDS:
                columns[field] = getattr(source, field)
            metric = await metric_repository.create(db, columns)
            await self._ensure_owner_membership(db, scorecard_id, source.owner_user_id)
            created.append(MetricRecord.model_validate(metric))
        return created

    # === 지표 값 (Metric entries) ===

    async def upsert_entry(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        metric_id: UUID,
        data: MetricEntryUpsert,
        user: Profile,
    ) -> MetricEntryRecord:
        """(metric_id, period_start) 기준으로 값을 입력하거나 갱신합니다.

        Insert or update the entry for one metric period. ``period_start``
        defaults to the current period of the metric's cadence; any other
        date is snapped to the start of the period that contains it.
        """
        await scorecard_service.get_editable_scorecard(db, scorecard_id, user)
        metric = await self._get_metric(db, scorecard_id, metric_id)

        value: float = parse_entry_value(data.value, metric.scoring_mode)
        period_start: date = get_current_period_start(metric.cadence, today=data.period_start)

        entry: MetricEntry | None = await metric_entry_repository.get_for_period(db, metric_id, period_start)
        if entry is None:
            entry = await metric_entry_repository.create(
                db,
                {
                    "metric_id": metric_id,
                    "period_start": period_start,
                    "value": value,
                    "note": data.note,
                    "created_by": user.id,
                },
            )
        else:
            entry.value = value
            if data.note is not None:
                entry.note = data.note
            await db.flush()
            await db.refresh(entry)
        return MetricEntryRecord.model_validate(entry)

    async def _get_entry(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        metric_id: UUID,
        period_start: date,
    ) -> MetricEntry:
        # 임의 날짜도 해당 기간의 시작일로 조회
        metric = await self._get_metric(db, scorecard_id, metric_id)
        canonical: date = get_current_period_start(metric.cadence, today=period_start)
        entry: MetricEntry | None = await metric_entry_repository.get_for_period(db, metric_id, canonical)
        if entry is None:
            raise NotFoundError("Entry not found")
        return entry

    async def delete_entry(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        metric_id: UUID,
        period_start: date,
        user: Profile,
    ) -> None:
        """기간 값을 삭제합니다."""
        await scorecard_service.get_editable_scorecard(db, scorecard_id, user)
        entry = await self._get_entry(db, scorecard_id, metric_id, period_start)
        await db.delete(entry)
        await db.flush()

    async def update_entry_note(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        metric_id: UUID,
        period_start: date,
        note: str | None,
        user: Profile,
    ) -> MetricEntryRecord:
        """기간 값의 메모를 수정합니다 — 빈 문자열은 메모 삭제."""
        await scorecard_service.get_editable_scorecard(db, scorecard_id, user)
        entry = await self._get_entry(db, scorecard_id, metric_id, period_start)
        entry.note = note.strip() if note and note.strip() else None
        await db.flush()
        await db.refresh(entry)
        return MetricEntryRecord.model_validate(entry)


# 싱글턴 인스턴스 — Singleton instance
metric_service: MetricService = MetricService()
