"""지표 라우터 — 지표 생성/수정/보관/복원/삭제/정렬/복사 및 값 입력.

Metric Router — metric lifecycle and metric entries, nested under a
scorecard. Every write commits the request session.
"""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.people import Profile
from app.schemas.common import MessageResponse
from app.schemas.metric import (
    CopyMetricsRequest,
    MetricArchive,
    MetricConfig,
    MetricEntryNote,
    MetricEntryUpsert,
    MetricReorder,
)
from app.schemas.scorecard import MetricEntryRecord, MetricRecord
from app.services.metric_service import metric_service

router: APIRouter = APIRouter()


@router.post("", response_model=MetricRecord, status_code=201)
async def create_metric(
    scorecard_id: UUID,
    data: Annotated[MetricConfig, Body()],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> MetricRecord:
    """새 지표를 생성합니다.

    Create a metric. The body is discriminated by ``scoring_mode``.
    """
    result: MetricRecord = await metric_service.create_metric(db, scorecard_id, data, current_user)
    await db.commit()
    return result


@router.patch("/order", response_model=MessageResponse)
async def reorder_metrics(
    scorecard_id: UUID,
    data: MetricReorder,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> MessageResponse:
    """지표 표시 순서를 일괄 변경합니다 — 전부 적용되거나 전혀 적용되지 않음."""
    await metric_service.reorder_metrics(db, scorecard_id, data.items, current_user)
    await db.commit()
    return MessageResponse(message="Metrics reordered")


@router.post("/copy", response_model=list[MetricRecord], status_code=201)
async def copy_metrics(
    scorecard_id: UUID,
    data: CopyMetricsRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> list[MetricRecord]:
    """다른 스코어카드의 지표 설정을 복사합니다."""
    result: list[MetricRecord] = await metric_service.copy_metrics(
        db, scorecard_id, data.metric_ids, current_user
    )
    await db.commit()
    return result


@router.put("/{metric_id}", response_model=MetricRecord)
async def update_metric(
    scorecard_id: UUID,
    metric_id: UUID,
    data: Annotated[MetricConfig, Body()],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> MetricRecord:
    """지표 설정을 수정합니다."""
    result: MetricRecord = await metric_service.update_metric(db, scorecard_id, metric_id, data, current_user)
    await db.commit()
    return result


@router.post("/{metric_id}/archive", response_model=MetricRecord)
async def archive_metric(
    scorecard_id: UUID,
    metric_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
    data: MetricArchive | None = None,
) -> MetricRecord:
    """지표를 보관합니다 (값은 유지)."""
    reason: str | None = data.reason if data is not None else None
    result: MetricRecord = await metric_service.archive_metric(
        db, scorecard_id, metric_id, current_user, reason=reason
    )
    await db.commit()
    return result


@router.post("/{metric_id}/restore", response_model=MetricRecord)
async def restore_metric(
    scorecard_id: UUID,
    metric_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> MetricRecord:
    """보관된 지표를 복원합니다."""
    result: MetricRecord = await metric_service.restore_metric(db, scorecard_id, metric_id, current_user)
    await db.commit()
    return result


@router.delete("/{metric_id}", status_code=204)
async def delete_metric(
    scorecard_id: UUID,
    metric_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    """지표와 모든 값을 영구 삭제합니다."""
    await metric_service.delete_metric(db, scorecard_id, metric_id, current_user)
    await db.commit()


# === 지표 값 (Metric entries) ===

@router.put("/{metric_id}/entries", response_model=MetricEntryRecord)
async def upsert_entry(
    scorecard_id: UUID,
    metric_id: UUID,
    data: MetricEntryUpsert,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> MetricEntryRecord:
    """기간 값을 입력하거나 갱신합니다 (metric_id, period_start 기준)."""
    result: MetricEntryRecord = await metric_service.upsert_entry(db, scorecard_id, metric_id, data, current_user)
    await db.commit()
    return result


@router.patch("/{metric_id}/entries/note", response_model=MetricEntryRecord)
async def update_entry_note(
    scorecard_id: UUID,
    metric_id: UUID,
    data: MetricEntryNote,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> MetricEntryRecord:
    """기간 값의 메모를 수정합니다."""
    result: MetricEntryRecord = await metric_service.update_entry_note(
        db, scorecard_id, metric_id, data.period_start, data.note, current_user
    )
    await db.commit()
    return result


@router.delete("/{metric_id}/entries/{period_start}", status_code=204)
async def delete_entry(
    scorecard_id: UUID,
    metric_id: UUID,
    period_start: date,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    """기간 값을 삭제합니다."""
    await metric_service.delete_entry(db, scorecard_id, metric_id, period_start, current_user)
    await db.commit()
